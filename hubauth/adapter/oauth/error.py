"""OAuth adapter errors."""


class OAuthError(ValueError):
    """The provider handshake could not be completed."""

    pass
