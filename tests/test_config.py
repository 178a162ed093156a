"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ledger_intake.config import (
    Config,
    ConfigValidationError,
    create_default_config,
    load_config,
)

ENV_VARS = (
    "LEDGER_INTAKE_DB",
    "LEDGER_INTAKE_BUSINESS",
    "OCR_PROVIDER",
    "OCR_ENDPOINT",
    "OCR_TIMEOUT",
    "TESSERACT_CMD",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")

        assert config.state_db_path == Path("data/state.db")
        assert config.ocr.enabled is True
        assert config.ocr.psm_modes == [6, 11, 4]
        assert config.ingestion.max_report_items == 8
        assert config.ingestion.default_business_id is None

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "ocr:\n"
            "  enabled: false\n"
            "  remote_endpoint: https://ocr.example.com/extract\n"
            "  psm_modes: [6]\n"
            "ingestion:\n"
            "  max_report_items: 3\n"
            "  default_business_id: shop-7\n"
            "state_db_path: /tmp/intake.db\n"
        )

        config = load_config(path)

        assert config.ocr.enabled is False
        assert config.ocr.remote_endpoint == "https://ocr.example.com/extract"
        assert config.ocr.psm_modes == [6]
        assert config.ingestion.max_report_items == 3
        assert config.ingestion.default_business_id == "shop-7"
        assert config.state_db_path == Path("/tmp/intake.db")

    def test_environment_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGER_INTAKE_DB", str(tmp_path / "env.db"))
        monkeypatch.setenv("OCR_PROVIDER", "none")
        monkeypatch.setenv("OCR_ENDPOINT", "http://localhost:9000/ocr")
        monkeypatch.setenv("OCR_TIMEOUT", "5")
        monkeypatch.setenv("LEDGER_INTAKE_BUSINESS", "biz-env")

        config = load_config(tmp_path / "missing.yaml")

        assert config.state_db_path == tmp_path / "env.db"
        assert config.ocr.enabled is False
        assert config.ocr.is_remote_enabled() is False
        assert config.ocr.remote_endpoint == "http://localhost:9000/ocr"
        assert config.ocr.remote_timeout_seconds == 5
        assert config.ingestion.default_business_id == "biz-env"

    def test_bad_timeout(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OCR_TIMEOUT", "soon")

        with pytest.raises(ConfigValidationError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "ocr:\n"
            "  remote_endpoint: ftp://ocr.example.com\n"
            "ingestion:\n"
            "  max_report_items: 0\n"
        )

        with pytest.raises(ConfigValidationError) as excinfo:
            load_config(path)

        assert "remote_endpoint" in str(excinfo.value)
        assert "max_report_items" in str(excinfo.value)


class TestDefaultConfig:
    """Tests for the generated default file."""

    def test_default_file_loads_as_defaults(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        create_default_config(path)
        config = load_config(path)

        assert config == Config()

    def test_validate(self):
        config = Config()
        config.ocr.render_scale = 0

        assert config.validate() == ["ocr.render_scale must be positive"]
