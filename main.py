"""Command-line interface for the user administration front-end."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from useradmin.config import ClientSettings, load_settings
from useradmin.sessions import SessionStore
from useradmin.storage import LocalStorage

logger = logging.getLogger("useradmin.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User administration front-end")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", config=None)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: config/useradmin.yaml)",
    )

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Serve the administration web UI"
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the UI")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the UI (default: 8000)",
    )

    subparsers.add_parser(
        "logout",
        parents=[common],
        help="Clear the stored session token and remembered credentials",
    )
    subparsers.add_parser(
        "show-session", parents=[common], help="Describe the stored session state"
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "logout", "show-session"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(config: str | None) -> ClientSettings:
    path = Path(config).expanduser() if config else None
    try:
        return load_settings(path)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc


def _open_session(settings: ClientSettings) -> SessionStore:
    storage = LocalStorage(settings.storage_path)
    return SessionStore(storage, secret=settings.secret)


def _serve(settings: ClientSettings, *, host: str, port: int) -> None:
    from useradmin.web import create_app
    import uvicorn

    logger.info("Serving user administration UI on http://%s:%s (API: %s)", host, port, settings.base_url)
    app = create_app(settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _logout(settings: ClientSettings) -> None:
    session = _open_session(settings)
    session.clear_session(forget_credentials=True, reason="cli logout")
    print("Stored session cleared.")


def _show_session(settings: ClientSettings) -> None:
    session = _open_session(settings)
    token = session.get_token()
    print(f"Storage: {settings.storage_path}")
    print(f"Signed in: {'yes' if token else 'no'}")
    credentials = session.load_remembered_credentials()
    if credentials is None:
        print("Remembered login: none")
    else:
        print(f"Remembered login: {credentials.email}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = _load_settings(args.config)

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "logout":
        _logout(settings)
    elif args.command == "show-session":
        _show_session(settings)


if __name__ == "__main__":
    main()
