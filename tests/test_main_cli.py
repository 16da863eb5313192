from pathlib import Path

from main import _parse_args, main
from useradmin.sessions import SessionStore
from useradmin.storage import LocalStorage


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"
    assert args.config is None


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "0.0.0.0", "--port", "8080", "--config", "alt.yaml"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 8080
    assert args.config == "alt.yaml"


def test_logout_subcommand_clears_stored_session(tmp_path: Path, monkeypatch, capsys) -> None:
    storage_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("USERADMIN_STORAGE_PATH", str(storage_path))
    monkeypatch.delenv("USERADMIN_SECRET", raising=False)
    SessionStore(LocalStorage(storage_path)).save_session("tok", True, "eve.holt@reqres.in", "pistol")

    main(["show-session", "--config", str(tmp_path / "missing.yaml")])
    assert "Remembered login: eve.holt@reqres.in" in capsys.readouterr().out

    main(["logout", "--config", str(tmp_path / "missing.yaml")])

    session = SessionStore(LocalStorage(storage_path))
    assert session.get_token() is None
    assert session.load_remembered_credentials() is None
    assert "Stored session cleared." in capsys.readouterr().out
