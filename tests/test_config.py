from __future__ import annotations

from pathlib import Path

import pytest

from useradmin.config import ClientSettings, load_settings, resolve_config_path


def test_defaults_without_config_file(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "missing.yaml", environ={})

    assert settings.base_url == "https://reqres.in"
    assert settings.request_timeout == 10.0
    assert settings.redirect_delay == 1.0
    assert settings.secret is None


def test_yaml_values_and_relative_storage_path(tmp_path: Path) -> None:
    config = tmp_path / "useradmin.yaml"
    config.write_text(
        "base_url: http://localhost:9000\n"
        "request_timeout: 2.5\n"
        "storage_path: state/local.sqlite3\n"
        "secret: s3cret\n",
        encoding="utf-8",
    )

    settings = load_settings(config, environ={})

    assert settings.base_url == "http://localhost:9000"
    assert settings.request_timeout == 2.5
    assert settings.storage_path == (tmp_path / "state" / "local.sqlite3").resolve()
    assert settings.secret == "s3cret"


def test_environment_overrides_file(tmp_path: Path) -> None:
    config = tmp_path / "useradmin.yaml"
    config.write_text("request_timeout: 2.5\n", encoding="utf-8")
    storage = tmp_path / "env.sqlite3"

    settings = load_settings(
        config,
        environ={
            "USERADMIN_REQUEST_TIMEOUT": "7",
            "USERADMIN_STORAGE_PATH": str(storage),
            "USERADMIN_REDIRECT_DELAY": "0.5",
        },
    )

    assert settings.request_timeout == 7.0
    assert settings.storage_path == storage.resolve()
    assert settings.redirect_delay == 0.5


@pytest.mark.parametrize(
    "data",
    [
        {"base_url": "ftp://reqres.in"},
        {"request_timeout": "soon"},
        {"redirect_delay": 0},
        {"colour": "blue"},
    ],
)
def test_invalid_values_are_rejected(data) -> None:
    with pytest.raises(ValueError):
        ClientSettings.from_dict(data)


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "useradmin.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config, environ={})


def test_resolve_config_path_uses_env_value(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.yaml"
    assert resolve_config_path(str(explicit)) == explicit.resolve()
    assert resolve_config_path(None).name == "useradmin.yaml"
