"""Tests for settings loading and logging setup."""

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from rentals.domain.exceptions import ConfigurationError
from rentals.infrastructure.config import DEFAULT_DATA_DIR, Settings, load_settings
from rentals.infrastructure.logging_config import configure_logging


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({})
        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.default_tax_rate == Decimal("5.0")
        assert settings.call_timeout == 10.0
        assert settings.log_level == "WARNING"
        assert settings.log_file is None

    def test_overrides(self, tmp_path):
        settings = load_settings({
            "RENTALS_DATA_DIR": str(tmp_path),
            "RENTALS_DEFAULT_TAX_RATE": "18",
            "RENTALS_CALL_TIMEOUT": "2.5",
            "RENTALS_LOG_LEVEL": "debug",
            "RENTALS_LOG_FILE": str(tmp_path / "rentals.log"),
        })
        assert settings.orders_file == tmp_path / "orders.json"
        assert settings.profiles_file == tmp_path / "profiles.json"
        assert settings.default_tax_rate == Decimal("18")
        assert settings.call_timeout == 2.5
        assert settings.log_level == "DEBUG"
        assert settings.log_file == tmp_path / "rentals.log"

    @pytest.mark.parametrize(
        "env",
        [
            {"RENTALS_DEFAULT_TAX_RATE": "five"},
            {"RENTALS_CALL_TIMEOUT": "soon"},
            {"RENTALS_CALL_TIMEOUT": "0"},
        ],
    )
    def test_bad_values_rejected(self, env):
        with pytest.raises(ConfigurationError):
            load_settings(env)


@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:

    def test_file_handler_writes(self, tmp_path):
        log_file = tmp_path / "logs" / "rentals.log"
        configure_logging(Settings(data_dir=tmp_path, log_level="INFO", log_file=log_file))

        logging.getLogger("rentals.test").info("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "[INFO] rentals.test: hello from the test" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self, tmp_path):
        configure_logging(Settings(data_dir=Path(tmp_path), log_level="CHATTY"))
        assert logging.getLogger().level == logging.INFO
