"""Administration front-end for the reqres.in user directory."""

from __future__ import annotations

from typing import Any

from .storage import LocalStorage, resolve_storage_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the administration web application."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "LocalStorage",
    "resolve_storage_path",
    "create_app",
]
