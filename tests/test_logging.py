import logging

from watermap.config.settings import AppSettings, Settings, get_settings
from watermap.core.logging import HTTP_LOGGERS, build_logging_config, configure_logging


def test_levels_come_from_settings():
    settings = Settings(app=AppSettings(log_level="debug", http_log_level="info"))

    config = build_logging_config(settings)

    assert config["root"]["level"] == "DEBUG"
    assert all(h["level"] == "DEBUG" for h in config["handlers"].values() if "level" in h)
    for name in HTTP_LOGGERS:
        assert config["loggers"][name]["level"] == "INFO"


def test_http_loggers_stay_quiet_by_default(monkeypatch):
    monkeypatch.delenv("WATERMAP_CONFIG_PATH", raising=False)
    monkeypatch.delenv("WATERMAP_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    try:
        configure_logging()
    finally:
        get_settings.cache_clear()

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
