"""Logging setup for processes that host a switchyard app.

Library code only ever calls ``logging.getLogger("switchyard.*")``; this
helper is for entry points that want those records on stderr.
"""

import logging

from switchyard.config import AppConfig
from switchyard.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach a stderr handler to the ``switchyard`` logger at ``config.log_level``.

    Idempotent: a second call only updates the level.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level {config.log_level!r}"
        raise ConfigurationError(msg)

    logger = logging.getLogger("switchyard")
    logger.setLevel(level)
    if not any(getattr(h, "_switchyard", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._switchyard = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
