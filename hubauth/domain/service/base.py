"""Domain service base."""


class Service:
    """Marker base for domain services.

    A service receives the store and the settings it needs in its
    constructor and is built per request by the DI container.
    """
