"""DI provider base class and component names."""

from typing import ClassVar, Literal

from dishka import Provider

# Infrastructure that tests can swap for in-process doubles
Component = Literal["oauth", "persistence"]


class ProviderBase(Provider):
    """Common base of every hubauth provider.

    Concrete layer providers leave both markers unset. A mockable component
    declares ``__mock_component__`` on its base class and ships one subclass
    with ``__is_mock__ = False`` and one (under ``tests/di``) with
    ``__is_mock__ = True``; ``get_provider`` picks between them.
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
