#!/usr/bin/env python3
"""Run the hubauth API under uvicorn.

Logfire is configured before the app is imported so startup failures (bad
settings, unreachable database) are reported too.
"""

import sys

import logfire
import uvicorn

from hubauth.config import Settings
from hubauth.util.logging import setup_logging
from hubauth.util.observability import configure_logfire


def main() -> int:
    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    logfire.info(
        "Starting hubauth",
        environment=settings.environment,
        host=settings.host,
        port=settings.port,
    )
    try:
        uvicorn.run(
            "hubauth.interface.api.app:create_app",
            factory=True,
            host="0.0.0.0",
            port=settings.port,
            reload=settings.environment == "development",
            log_level="debug" if settings.debug else "info",
        )
    except Exception as e:
        logfire.error(
            "hubauth failed to start",
            error_type=type(e).__name__,
            error=str(e),
            _exc_info=sys.exc_info(),
        )
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
