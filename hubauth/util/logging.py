"""Stdlib logging setup for the route modules and third-party libraries."""

import logging
import sys

from hubauth.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Libraries that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.pool", "httpx", "uvicorn.access")


def setup_logging(settings: Settings) -> None:
    """Configure root logging once at startup.

    DEBUG when ``settings.debug`` is set, INFO otherwise. Production keeps
    uvicorn's access log quiet: every request is already a logfire span.

    Args:
        settings: Application settings
    """
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    if settings.environment in ("staging", "production"):
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("hubauth").setLevel(level)
    logging.getLogger(__name__).info(
        "Logging configured for %s at %s",
        settings.environment,
        logging.getLevelName(level),
    )
