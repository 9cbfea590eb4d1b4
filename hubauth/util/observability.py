"""Logfire setup and instrumentation.

Services and use cases log through ``logfire`` directly::

    with logfire.span("reconcile_identity", strategy=strategy.value):
        logfire.info("New account created", account_id=str(account_id))

Cookie values, session secrets, API keys and OAuth codes are never passed as
attributes.
"""

from typing import Any

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from hubauth.config import Settings

SERVICE_NAME = "hubauth"
SERVICE_VERSION = "0.1.0"

# Not traced
EXCLUDED_URLS = "/health"


def _send_to_logfire(settings: Settings) -> bool:
    """An explicit setting wins; otherwise send only when a token is set."""
    observability = settings.observability
    if observability.send_to_logfire is not None:
        return observability.send_to_logfire
    return bool(observability.logfire_token)


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire once at process start.

    OBSERVABILITY__LOGFIRE_TOKEN enables export to Logfire cloud and
    OBSERVABILITY__SEND_TO_LOGFIRE overrides that choice. Without either,
    spans and logs only go to the console.

    Args:
        settings: Application settings
    """
    send_to_logfire = _send_to_logfire(settings)

    options: dict[str, Any] = {
        "service_name": SERVICE_NAME,
        "service_version": SERVICE_VERSION,
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    }
    if settings.observability.logfire_token:
        options["token"] = settings.observability.logfire_token

    logfire.configure(**options)
    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
    )


def _request_attributes(request: Any, attributes: dict[str, Any]) -> dict[str, Any]:
    # Path only: the callback query string carries the OAuth code
    result = {**attributes}
    url = getattr(request, "url", None)
    if url is not None:
        result["path"] = url.path
    client = getattr(request, "client", None)
    if client:
        result["client_host"] = client.host
    return result


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request except health checks.

    Headers are not captured: they carry the remember-me cookie.

    Args:
        app: FastAPI application instance
    """
    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        request_attributes_mapper=_request_attributes,
        excluded_urls=EXCLUDED_URLS,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace every statement run through the engine.

    Args:
        engine: SQLAlchemy async engine
    """
    logfire.instrument_sqlalchemy(engine=engine.sync_engine)
