"""Configuration management for the user administration front-end."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .gateway import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .login import DEFAULT_REDIRECT_DELAY
from .storage import resolve_storage_path

_ENV_OVERRIDES = {
    "USERADMIN_API_BASE_URL": "base_url",
    "USERADMIN_REQUEST_TIMEOUT": "request_timeout",
    "USERADMIN_STORAGE_PATH": "storage_path",
    "USERADMIN_SECRET": "secret",
    "USERADMIN_REDIRECT_DELAY": "redirect_delay",
}


def _positive_float(name: str, value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{name}' must be a number, got {value!r}") from exc
    if number <= 0:
        raise ValueError(f"'{name}' must be greater than zero")
    return number


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    candidate = Path(str(raw)).expanduser()
    if candidate.is_absolute() or base_path is None:
        return candidate.resolve(strict=False)
    return (base_path / candidate).resolve(strict=False)


@dataclass(frozen=True)
class ClientSettings:
    """Settings shared by the API gateway, session store and web UI."""

    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT
    storage_path: Path = resolve_storage_path(None)
    secret: Optional[str] = None
    redirect_delay: float = DEFAULT_REDIRECT_DELAY

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ClientSettings":
        """Create :class:`ClientSettings` from raw dictionary data."""
        unknown = set(data.keys()) - set(_ENV_OVERRIDES.values())
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        defaults = ClientSettings()
        base_url = str(data.get("base_url") or defaults.base_url).strip()
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("'base_url' must be an http:// or https:// URL")

        raw_storage = data.get("storage_path")
        storage_path = (
            _resolve_path(raw_storage, base_path) if raw_storage else defaults.storage_path
        )
        secret = data.get("secret")

        return ClientSettings(
            base_url=base_url,
            request_timeout=_positive_float(
                "request_timeout", data.get("request_timeout", defaults.request_timeout)
            ),
            storage_path=storage_path,
            secret=str(secret) if secret else None,
            redirect_delay=_positive_float(
                "redirect_delay", data.get("redirect_delay", defaults.redirect_delay)
            ),
        )


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "useradmin.yaml").resolve(strict=False)
    return candidate


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientSettings:
    """Load settings from an optional YAML file, then apply environment overrides."""
    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = resolve_config_path(env.get("USERADMIN_CONFIG"))

    raw: Dict[str, object] = {}
    base_path: Path | None = None
    if config_path.is_file():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        raw.update(loaded)
        base_path = config_path.parent

    settings = ClientSettings.from_dict(raw, base_path=base_path)

    overrides: Dict[str, object] = {}
    for variable, key in _ENV_OVERRIDES.items():
        value = env.get(variable)
        if value is not None and value.strip():
            overrides[key] = value.strip()
    if not overrides:
        return settings

    merged = {
        "base_url": settings.base_url,
        "request_timeout": settings.request_timeout,
        "storage_path": str(settings.storage_path),
        "secret": settings.secret,
        "redirect_delay": settings.redirect_delay,
    }
    merged.update(overrides)
    return ClientSettings.from_dict(merged)


__all__ = ["ClientSettings", "load_settings", "resolve_config_path"]
