"""Production container and its FastAPI wiring."""

from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from hubauth.util.di import PROVIDERS, get_provider


def create_container() -> AsyncContainer:
    """Container with the production implementation of every component.

    Settings come from the environment when first requested, so building
    the container does not touch the database or any provider.
    """
    providers = [get_provider(base, use_mock=False)() for base in PROVIDERS]
    # Routes resolve per-request dependencies through the FastAPI Request
    return make_async_container(*providers, FastapiProvider())


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach a container to the app; routes use ``FromDishka[...]``."""
    setup_dishka(container, app)
