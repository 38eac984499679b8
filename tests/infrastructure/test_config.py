"""Tests for environment-driven settings and logging setup."""

import json
import logging
from pathlib import Path

import pytest

from storefront.infrastructure.config import Settings
from storefront.infrastructure.logging_config import configure_logging


class TestSettings:

    def test_defaults(self):
        cfg = Settings.from_env({"STOREFRONT_DATA_DIR": "/tmp/sf"})
        assert cfg.database_url == "sqlite:///" + str(Path("/tmp/sf") / "storefront.db")
        assert cfg.tokens_file == Path("/tmp/sf") / "tokens.json"
        assert cfg.stripe_secret_key is None
        assert cfg.currency == "usd"
        assert cfg.payment_timeout == 30.0
        assert cfg.log_level == "WARNING"
        assert cfg.log_json is False

    def test_overrides(self):
        cfg = Settings.from_env(
            {
                "STOREFRONT_DATABASE_URL": "postgresql+psycopg://u:p@db/shop",
                "STOREFRONT_TOKENS_FILE": "/etc/sf/tokens.json",
                "STRIPE_SECRET_KEY": "sk_test_1",
                "STOREFRONT_CURRENCY": "EUR",
                "STOREFRONT_PAYMENT_TIMEOUT": "5",
                "STOREFRONT_LOG_LEVEL": "debug",
                "STOREFRONT_LOG_JSON": "true",
            }
        )
        assert cfg.database_url.startswith("postgresql")
        assert cfg.tokens_file == Path("/etc/sf/tokens.json")
        assert cfg.stripe_secret_key == "sk_test_1"
        assert cfg.currency == "eur"
        assert cfg.payment_timeout == 5.0
        assert cfg.log_level == "DEBUG"
        assert cfg.log_json is True


class TestLogging:

    @pytest.fixture(autouse=True)
    def _restore_logger(self):
        yield
        app_logger = logging.getLogger("storefront")
        for handler in list(app_logger.handlers):
            app_logger.removeHandler(handler)
        app_logger.setLevel(logging.NOTSET)

    def test_json_logs(self, capsys):
        configure_logging("INFO", json_logs=True)
        logging.getLogger("storefront.test").info("order placed", extra={"order_id": 7})

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "order placed"
        assert record["order_id"] == 7

    def test_text_logs_respect_level(self, capsys):
        configure_logging("WARNING")
        logging.getLogger("storefront.test").info("hidden")
        logging.getLogger("storefront.test").warning("shown")

        err = capsys.readouterr().err
        assert "shown" in err
        assert "hidden" not in err

    def test_reconfigure_replaces_handler(self):
        configure_logging("INFO")
        configure_logging("WARNING")
        assert len(logging.getLogger("storefront").handlers) == 1
