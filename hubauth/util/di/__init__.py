"""Dependency injection providers for hubauth.

``PROVIDERS`` lists one entry per layer or component. Layer providers are
concrete. Component providers (``OAuthProvider``, ``PersistenceProvider``)
are bases whose subclasses are the production and mock implementations.
"""

from typing import Type

from hubauth.util.di.application import ProdApplicationProvider
from hubauth.util.di.base import Component, ProviderBase
from hubauth.util.di.core import ProdConfigProvider
from hubauth.util.di.domain import ProdDomainProvider
from hubauth.util.di.infrastructure import (
    OAuthProvider,
    PersistenceProvider,
    ProdOAuthProvider,
    ProdPersistenceProvider,
)

PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdDomainProvider,
    ProdApplicationProvider,
    OAuthProvider,
    PersistenceProvider,
]


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve an entry of ``PROVIDERS`` to the class to instantiate.

    Args:
        base: Layer provider or component base
        use_mock: For components, pick the implementation marked
            ``__is_mock__ = True``

    Returns:
        ``base`` itself for layer providers, otherwise the matching subclass

    Raises:
        ValueError: If the component has no implementation of that kind
            (mocks only register once ``tests.di`` is imported)
    """
    implementations = base.__subclasses__()
    if not implementations:
        return base

    for impl in implementations:
        if getattr(impl, "__is_mock__", False) == use_mock:
            return impl

    kind = "mock" if use_mock else "production"
    raise ValueError(
        f"No {kind} implementation for {base.__mock_component__ or base.__name__}"
    )


__all__ = [
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "get_provider",
    "ProdConfigProvider",
    "ProdDomainProvider",
    "ProdApplicationProvider",
    "OAuthProvider",
    "PersistenceProvider",
    "ProdOAuthProvider",
    "ProdPersistenceProvider",
]
