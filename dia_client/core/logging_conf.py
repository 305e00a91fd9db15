import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

from dia_client.core.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno


class RequestFormatter(logging.Formatter):
    """Prefixes records that carry a ``request_id`` extra."""

    def format(self, record):
        if hasattr(record, 'request_id'):
            record.request_id = f'[{record.request_id}]'
        else:
            record.request_id = ''
        return super().format(record)


def build_logging_config(env_mode: str = "development", log_file: Optional[str] = None) -> dict:
    """Build the dictConfig for the client loggers."""
    log_file = log_file if log_file is not None else settings.LOG_FILE

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "()": RequestFormatter,
                "format": settings.LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": CustomJsonFormatter,
                "format": "%(timestamp)s %(level)s %(name)s %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": "NOTSET",
                "stream": "ext://sys.stderr"
            },
        },
        "loggers": {
            "dia_client": {
                "level": settings.LOG_LEVEL,
                "handlers": ["console"],
                "propagate": False
            },
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
        },
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": log_file,
            "maxBytes": settings.LOG_MAX_BYTES,
            "backupCount": settings.LOG_BACKUP_COUNT,
            "level": "INFO"
        }
        config["loggers"]["dia_client"]["handlers"].append("file")

    if env_mode == "development":
        config["loggers"]["dia_client"]["level"] = "DEBUG"
    else:
        config["handlers"]["console"]["level"] = "WARNING"

    return config


def setup_logging(env_mode: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Initialize the logging configuration"""
    env_mode = env_mode or settings.ENV
    logging.config.dictConfig(build_logging_config(env_mode, log_file))

    logging.getLogger("dia_client").info(
        "Logging system initialized",
        extra={"environment": env_mode}
    )
