"""Structured logging configuration for the dashboard service.

Module loggers live under the ``dashboard`` namespace and attach context
through ``extra={...}``. The formatter here renders that context as
``key=value`` pairs after the message so it is not lost on stdout.
"""
import logging
import sys

ROOT_LOGGER = "dashboard"

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields as sorted ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} {pairs}"


def setup_logger(name: str = ROOT_LOGGER, level: str = "INFO") -> logging.Logger:
    """Configure structured logging for the service.

    Configuring the ``dashboard`` logger covers every module logger created
    with ``logging.getLogger(__name__)`` inside the package, since they
    propagate to it.

    Args:
        name: Logger name (defaults to the package logger)
        level: Log level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               Defaults to INFO if invalid level provided

    Returns:
        Configured logger instance ready for use

    Example:
        >>> logger = setup_logger("dashboard", "DEBUG")
        >>> logger.info("Store ready", extra={"backend": "memory"})
    """
    logger = logging.getLogger(name)

    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
        print(f"Warning: Invalid log level '{level}', defaulting to INFO", file=sys.stderr)

    logger.setLevel(log_level)

    # Reconfiguring only changes the level (lifespan runs after a bootstrap call)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(ContextFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(handler)

    # Keep records out of the root logger so uvicorn's handlers don't repeat them
    logger.propagate = False

    return logger
