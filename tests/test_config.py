import logging

from dia_client.core.config import Settings
from dia_client.core.logging_conf import build_logging_config, setup_logging


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DIA_API_URL", "https://dia.example.com/")
    monkeypatch.setenv("DIA_LOG_LEVEL", "debug")
    monkeypatch.setenv("DIA_RUN_POLL_INTERVAL", "0.5")

    settings = Settings(_env_file=None)

    assert settings.api_base_url == "https://dia.example.com/api/v1"
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.RUN_POLL_INTERVAL == 0.5


def test_logging_config_for_production():
    config = build_logging_config("production", log_file="")

    assert config["handlers"]["console"]["level"] == "WARNING"
    assert "file" not in config["handlers"]
    assert config["loggers"]["httpx"]["level"] == "WARNING"


def test_logging_config_with_file(tmp_path):
    log_file = tmp_path / "logs" / "client.log"

    config = build_logging_config("development", log_file=str(log_file))

    assert config["loggers"]["dia_client"]["level"] == "DEBUG"
    assert config["loggers"]["dia_client"]["handlers"] == ["console", "file"]
    assert config["handlers"]["file"]["formatter"] == "json"
    assert log_file.parent.exists()


def test_setup_logging(tmp_path):
    log_file = tmp_path / "client.log"

    setup_logging("development", log_file=str(log_file))
    logging.getLogger("dia_client.tests").info("Submitted run", extra={"run_id": "run-1"})
    for handler in logging.getLogger("dia_client").handlers:
        handler.flush()

    contents = log_file.read_text()
    assert '"message": "Submitted run"' in contents
    assert '"run_id": "run-1"' in contents
