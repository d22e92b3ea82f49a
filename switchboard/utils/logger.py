import os
import logging
import logging.config
import json
from datetime import datetime, timezone
import traceback
from typing import Dict, Any, Optional

# Default logging level
DEFAULT_LOG_LEVEL = os.getenv("SWITCHBOARD_LOG_LEVEL", "INFO").upper()

# Log format for different environments
LOG_FORMAT = os.getenv(
    "SWITCHBOARD_LOG_FORMAT",
    "json" if os.getenv("SWITCHBOARD_ENVIRONMENT", "").lower() == "production" else "text"
)

# Attributes every LogRecord carries; anything else was passed through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Custom formatter that outputs log records as JSON objects.
    Context bound through ``LoggerAdapter.bind`` (module name, job type,
    request id) is emitted as top-level fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread": record.thread,
        }

        # Add exception info if available
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_format: str = LOG_FORMAT,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the logging system for the host process.

    Args:
        log_level: The minimum log level to record (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: The format of the logs (json or text)
        log_file: Path to the log file, if None logs will be sent to stdout
    """
    log_level = log_level.upper()
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s (%(module)s:%(lineno)d): %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "json" if log_format == "json" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {  # Root logger
                "handlers": ["console"],
                "level": log_level,
                "propagate": True,
            },
            "uvicorn": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }

    if log_file:
        log_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "json" if log_format == "json" else "detailed",
            "filename": log_file,
            "maxBytes": 10485760,  # 10 MB
            "backupCount": 5,
            "encoding": "utf8",
        }
        log_config["loggers"][""]["handlers"].append("file")

    logging.config.dictConfig(log_config)

    logger = logging.getLogger("switchboard.logging")
    logger.info(
        f"Logging configured with level={log_level}, format={log_format}, "
        f"file={'enabled' if log_file else 'disabled'}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: The name of the logger, typically the module name

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds context to log messages.

    Usage:
        log = LoggerAdapter(get_logger(__name__)).bind(switchboard_module="jira")
        log.info("Loaded routes")  # record carries switchboard_module="jira"
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Process the log message to add context."""
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        kwargs['extra'].update(self.extra)

        return msg, kwargs

    def bind(self, **kwargs) -> 'LoggerAdapter':
        """
        Create a new logger adapter with additional context.

        Args:
            **kwargs: Additional context to add to the logger

        Returns:
            A new LoggerAdapter with the combined context
        """
        new_extra = dict(self.extra)
        new_extra.update(kwargs)
        return LoggerAdapter(self.logger, new_extra)
