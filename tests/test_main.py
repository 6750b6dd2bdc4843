"""Tests for the CLI entry point."""

from unittest.mock import patch

import pytest

from atlas_exporter import __version__
from atlas_exporter.main import build_parser, main, overrides_from_args


CREDENTIAL_FLAGS = [
    "--atlas.api-public-key", "pub",
    "--atlas.api-private-key", "priv",
    "--atlas.project", "proj",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ATLAS_PUBLIC_KEY", "ATLAS_PRIVATE_KEY", "ATLAS_PROJECT_ID"):
        monkeypatch.delenv(var, raising=False)


def test_flags_map_to_nested_overrides():
    args = build_parser().parse_args(CREDENTIAL_FLAGS + ["--web.listen-address", ":9200", "--log.level", "debug"])

    overrides = overrides_from_args(args)

    assert overrides["atlas"] == {"public_key": "pub", "private_key": "priv", "project_id": "proj"}
    assert overrides["web"]["listen_address"] == ":9200"
    assert overrides["web"]["scrape_path"] is None
    assert overrides["web"]["timeout_offset"] is None
    assert overrides["logging"] == {"level": "debug"}


def test_version(capsys):
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_missing_credentials_exit_1():
    assert main(["--atlas.project", "proj"]) == 1


def test_invalid_configuration_exit_1():
    assert main(CREDENTIAL_FLAGS + ["--web.listen-address", "nowhere"]) == 1


def test_serves_with_configured_address():
    with patch("atlas_exporter.main.uvicorn.run") as run:
        assert main(CREDENTIAL_FLAGS + ["--web.listen-address", "127.0.0.1:9200", "--log.level", "warn"]) == 0

    kwargs = run.call_args.kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9200
    assert kwargs["log_level"] == "warning"


def test_listener_failure_exit_1():
    with patch("atlas_exporter.main.uvicorn.run", side_effect=SystemExit(1)):
        assert main(CREDENTIAL_FLAGS) == 1


def test_listener_os_error_exit_1():
    with patch("atlas_exporter.main.uvicorn.run", side_effect=OSError("address in use")):
        assert main(CREDENTIAL_FLAGS) == 1


def test_timeout_offset_flag():
    args = build_parser().parse_args(CREDENTIAL_FLAGS + ["--web.timeout-offset", "1.5"])

    assert overrides_from_args(args)["web"]["timeout_offset"] == 1.5
