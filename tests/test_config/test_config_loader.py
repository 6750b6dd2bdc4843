"""Tests for configuration models and loading."""

import pytest
from pydantic import ValidationError

from atlas_exporter.config.loader import ConfigLoader, ConfigurationError
from atlas_exporter.config.models import (
    SKIP_DATABASES,
    CollectionConfig,
    ExporterConfig,
    MeasurementWindow,
    WebConfig,
)


CREDENTIALS = {"atlas": {"public_key": "pub", "private_key": "priv", "project_id": "proj"}}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ATLAS_PUBLIC_KEY", "ATLAS_PRIVATE_KEY", "ATLAS_PROJECT_ID"):
        monkeypatch.delenv(var, raising=False)


class TestModels:

    def test_defaults(self):
        config = ExporterConfig(**CREDENTIALS)

        assert config.web.listen_address == ":9139"
        assert config.web.scrape_path == "/scrape"
        assert config.web.telemetry_path == "/metrics"
        assert config.logging.level == "error"
        assert config.collection.process_window == MeasurementWindow(granularity="PT5M", period="PT1H")
        assert config.atlas.verify_project is False

    def test_listen_address_parts(self):
        assert (WebConfig().host, WebConfig().port) == ("0.0.0.0", 9139)
        web = WebConfig(listen_address="127.0.0.1:8080")
        assert (web.host, web.port) == ("127.0.0.1", 8080)
        web = WebConfig(listen_address="[::1]:9139")
        assert web.host == "::1"

    @pytest.mark.parametrize("address", ["9139", "host:", "host:70000", "host:abc"])
    def test_invalid_listen_address(self, address):
        with pytest.raises(ValidationError):
            WebConfig(listen_address=address)

    def test_paths_must_differ(self):
        with pytest.raises(ValidationError):
            WebConfig(scrape_path="/metrics", telemetry_path="/metrics")

    def test_paths_must_be_absolute(self):
        with pytest.raises(ValidationError):
            WebConfig(scrape_path="scrape")

    def test_timeout_offset(self):
        assert WebConfig().timeout_offset == 0.5
        with pytest.raises(ValidationError):
            WebConfig(timeout_offset=-1)

    @pytest.mark.parametrize("duration", ["5m", "PT", "P", "1H", "PT5X"])
    def test_invalid_window(self, duration):
        with pytest.raises(ValidationError):
            MeasurementWindow(granularity=duration)

    @pytest.mark.parametrize("duration", ["PT1M", "PT5M", "PT1H", "P1D", "P1DT12H"])
    def test_valid_window(self, duration):
        assert MeasurementWindow(period=duration).period == duration

    def test_skip_list_always_contains_internal_databases(self):
        config = CollectionConfig(extra_skip_databases=["admin", "local"])

        assert config.skip_databases == SKIP_DATABASES + ("admin",)

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ExporterConfig(**CREDENTIALS, logging={"level": "verbose"})

    def test_log_level_normalized(self):
        assert ExporterConfig(**CREDENTIALS, logging={"level": "WARN"}).logging.level == "warn"

    def test_config_is_immutable(self):
        config = ExporterConfig(**CREDENTIALS)

        with pytest.raises(ValidationError):
            config.atlas.project_id = "other"


class TestConfigLoader:

    def test_overrides_only(self):
        config = ConfigLoader.load(overrides=CREDENTIALS)

        assert config.atlas.project_id == "proj"

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError, match="private_key"):
            ConfigLoader.load(overrides={"atlas": {"public_key": "pub", "project_id": "proj"}})

    def test_environment_credentials(self, monkeypatch):
        monkeypatch.setenv("ATLAS_PUBLIC_KEY", "env-pub")
        monkeypatch.setenv("ATLAS_PRIVATE_KEY", "env-priv")

        config = ConfigLoader.load(overrides={"atlas": {"project_id": "proj"}})

        assert config.atlas.public_key == "env-pub"
        assert config.atlas.private_key == "env-priv"

    def test_file_with_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "from-env")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "atlas:\n"
            "  public_key: pub\n"
            "  private_key: ${SECRET_KEY}\n"
            "  project_id: proj\n"
            "web:\n"
            "  listen_address: ':9200'\n"
            "collection:\n"
            "  database_window:\n"
            "    period: PT5M\n"
        )

        config = ConfigLoader.load(str(config_file))

        assert config.atlas.private_key == "from-env"
        assert config.web.port == 9200
        assert config.collection.database_window.period == "PT5M"
        assert config.collection.process_window.period == "PT1H"

    def test_cli_overrides_win_and_none_is_ignored(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "atlas: {public_key: pub, private_key: priv, project_id: from-file}\n"
            "web: {scrape_path: /atlas}\n"
        )

        config = ConfigLoader.load(
            str(config_file),
            {"atlas": {"project_id": "from-cli", "public_key": None}, "web": {"scrape_path": None}}
        )

        assert config.atlas.project_id == "from-cli"
        assert config.atlas.public_key == "pub"
        assert config.web.scrape_path == "/atlas"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader.load(str(tmp_path / "absent.yaml"), CREDENTIALS)

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader.load(str(config_file), CREDENTIALS)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            ConfigLoader.load(overrides={**CREDENTIALS, "targets": {}})
