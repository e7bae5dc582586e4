import json
import logging
from datetime import time

import pytest
from pydantic import ValidationError

from busdesk.config.logging import CustomJsonFormatter, build_logging_config
from busdesk.config.settings import Settings
from busdesk.services.booking import PricingCalculator


def test_defaults(settings):
    assert settings.TIMEZONE == "Asia/Colombo"
    assert settings.REMOTE_STORE_TIMEOUT is None
    assert settings.expiry_cutoff_time == time(5, 30)
    assert settings.BUS_SERVICES["Star Travels"]["price"] == 1600


def test_bus_services_accept_json():
    settings = Settings(_env_file=None, BUS_SERVICES='{"Night Rider": {"price": 1000, "time": "10:00 PM"}}')
    assert settings.BUS_SERVICES == {"Night Rider": {"price": 1000, "time": "10:00 PM"}}


def test_invalid_cutoff_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, EXPIRY_CUTOFF="half past five")


def test_log_level_is_upper_cased():
    assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


def test_logging_config_adds_json_file_handler(tmp_path):
    settings = Settings(_env_file=None, LOG_DIR=str(tmp_path), LOG_JSON=True, ENVIRONMENT="production")

    config = build_logging_config(settings)

    assert config["handlers"]["file"]["formatter"] == "json"
    assert config["handlers"]["console"]["formatter"] == "standard"
    assert config["loggers"]["busdesk"]["handlers"] == ["console", "file"]


def test_logging_config_colors_console_in_development():
    config = build_logging_config(Settings(_env_file=None, ENVIRONMENT="development"))

    assert config["handlers"]["console"]["formatter"] == "colored"
    assert "file" not in config["handlers"]


def test_json_formatter_carries_booking_context():
    formatter = CustomJsonFormatter("%(message)s", environment="test")
    record = logging.LogRecord("busdesk.test", logging.INFO, __file__, 1, "Approved", None, None)
    record.booking_id = "BK-1"
    record.stage = "pending"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Approved"
    assert payload["booking_id"] == "BK-1"
    assert payload["stage"] == "pending"
    assert payload["environment"] == "test"
    assert payload["level"] == "INFO"


def test_pricing_reads_only_the_bus_table(settings):
    pricing = PricingCalculator.from_settings(Settings(_env_file=None, CURRENCY="USD"))

    assert set(pricing.bus_services) == set(settings.BUS_SERVICES)
    assert not hasattr(pricing, "currency")
    assert not hasattr(settings, "CURRENCY")


def test_environment_helper():
    assert Settings(_env_file=None, ENVIRONMENT="development").is_development()
    assert not Settings(_env_file=None, ENVIRONMENT="production").is_development()
    assert not hasattr(Settings, "is_production")
