"""FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hubauth.config import Settings
from hubauth.interface.api.routes import auth, health
from hubauth.util.background import drain_background_tasks
from hubauth.util.di.container import create_container, setup_di
from hubauth.util.observability import instrument_fastapi


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Sign-in and account creation logging may still be in flight
    await drain_background_tasks()
    await app.state.dishka_container.close()


def create_app(
    container: AsyncContainer | None = None, settings: Settings | None = None
) -> FastAPI:
    """Create FastAPI application.

    Note: Logfire should be configured before calling this function.
    In production, start_app.py handles this.
    In tests, conftest.py does.

    Args:
        container: DI container; the production container when omitted
        settings: Settings used for CORS; loaded from environment when omitted
    """
    settings = settings or Settings()

    app_instance = FastAPI(
        title="hubauth",
        description="Sign-in service linking third-party identities to hub accounts",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    instrument_fastapi(app_instance)

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=[
            settings.api.frontend_url,
            "http://localhost:3000",  # Local development
        ],
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "Origin"],
        max_age=600,
    )

    setup_di(app_instance, container or create_container())

    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)

    return app_instance
