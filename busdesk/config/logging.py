"""
Logging configuration for the booking engine.
Provides console logging (colored in development) and an optional
rotating JSON log file.
"""

import os
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from busdesk.config.settings import Settings, get_settings


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter that adds booking context fields"""

    CONTEXT_FIELDS = ("booking_id", "booking_key", "stage", "operation", "entity_ref")

    def __init__(self, *args, environment: str = "development", **kwargs):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = self.environment

        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """Create the dictConfig for the given settings"""
    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'level': 'DEBUG' if settings.DEBUG else settings.LOG_LEVEL,
            'class': 'logging.StreamHandler',
            'formatter': 'colored' if settings.is_development() else 'standard'
        },
    }

    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers['file'] = {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': os.path.join(settings.LOG_DIR, 'busdesk.log'),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'formatter': 'json' if settings.LOG_JSON else 'standard',
            'encoding': 'utf8'
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'fmt': '%(timestamp)s %(level)s %(logger)s %(message)s',
                'environment': settings.ENVIRONMENT,
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            'busdesk': {
                'handlers': list(handlers),
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'httpx': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False
            },
        }
    }


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure engine logging"""
    settings = settings or get_settings()
    logging.config.dictConfig(build_logging_config(settings))
    logger = logging.getLogger("busdesk")
    logger.info(f"Logging initialized with level: {settings.LOG_LEVEL}")
    return logger
