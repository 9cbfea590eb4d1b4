"""Cookie names and settings shared by the auth routes.

All names are prefixed with the configured base path so several servers can
share a domain.
"""

from fastapi import Request, Response

from hubauth.config import Settings


def remember_me_cookie_name(base_path: str) -> str:
    return f"{base_path}remember_me"


def legacy_remember_me_cookie_name(base_path: str) -> str:
    return f"{base_path}remember_me-legacy"


def api_key_cookie_name(base_path: str) -> str:
    return f"{base_path}get_api_key"


def read_remember_me(request: Request, settings: Settings) -> str | None:
    """Remember-me cookie, falling back to the legacy cookie name."""
    base_path = settings.auth.base_path
    return request.cookies.get(
        remember_me_cookie_name(base_path)
    ) or request.cookies.get(legacy_remember_me_cookie_name(base_path))


def set_cookie(
    response: Response,
    settings: Settings,
    key: str,
    value: str,
    max_age: int,
) -> None:
    """Set an HTTP-only cookie; secure outside local development and tests."""
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age,
        httponly=True,
        secure=settings.environment not in ("test", "development"),
        samesite="lax",
        path="/",
    )
