"""
Structured JSON logging configuration.

Project modules log through logging.getLogger(__name__); configure_logging()
attaches handlers to the top-level package loggers so those records are
emitted once, in the configured format.
"""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

PROJECT_LOGGERS = ("accounts", "api", "core")


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for attr in ('error_id', 'user', 'endpoint', 'method', 'status_code', 'remote_addr'):
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        return json.dumps(log_entry)


def _build_handlers(log_format: str, log_file: str) -> list[logging.Handler]:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    if log_format == 'json':
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    handlers = [console_handler]

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    return handlers


def configure_logging(app=None, settings=None):
    """Configure logging for the project packages.

    Args:
        app: Optional Flask app whose logger will be updated.
        settings: AppSettings; defaults to get_settings().

    Returns:
        The "accounts" logger.
    """
    if settings is None:
        from config.settings import get_settings
        settings = get_settings()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    handlers = _build_handlers(settings.log_format, settings.log_file)

    for name in PROJECT_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers = list(handlers)
        logger.propagate = False

    # Sync Flask's logger
    if app is not None:
        app.logger.handlers = list(handlers)
        app.logger.setLevel(level)

    return logging.getLogger(PROJECT_LOGGERS[0])
