"""Authentication routes."""

import logging
import secrets
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from hubauth.application.usecase.auth import (
    CompleteLoginRequest,
    CompleteLoginUseCase,
    LoginResult,
)
from hubauth.config import Settings
from hubauth.domain.error import MalformedTokenError
from hubauth.domain.model import Rejected
from hubauth.domain.service import AuthService
from hubauth.domain.value import AuthStrategy, SessionContext
from hubauth.interface.api.cookies import (
    api_key_cookie_name,
    read_remember_me,
    remember_me_cookie_name,
    set_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)


class StrategiesResponse(BaseModel):
    """Sign-in strategies offered to users."""

    strategies: list[str]


def _error_redirect(settings: Settings, error: str, message: str) -> RedirectResponse:
    query = urlencode({"error": error, "message": message})
    return RedirectResponse(
        url=f"{settings.api.frontend_url}/auth/error?{query}",
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/strategies", response_model=StrategiesResponse)
async def list_strategies(auth_service: FromDishka[AuthService]) -> StrategiesResponse:
    """List configured strategies, "email" first.

    Example:
        GET /auth/strategies

        Response:
        {
            "strategies": ["email", "github", "google"]
        }
    """
    return StrategiesResponse(strategies=auth_service.configured_strategies())


@router.get("/{strategy}")
async def start_login(
    strategy: AuthStrategy,
    auth_service: FromDishka[AuthService],
    settings: FromDishka[Settings],
    get_api_key: str | None = None,
) -> RedirectResponse:
    """Redirect to the provider to start an SSO round trip.

    When ``get_api_key`` is given the caller wants an API key at the end of
    the round trip; the token is kept in a short-lived cookie until the
    provider redirects back.

    Raises:
        HTTPException: If the strategy is not configured
    """
    logger.info(f"Starting {strategy.value} login, api_key_requested={bool(get_api_key)}")

    state = secrets.token_urlsafe(32)
    try:
        auth_url = await auth_service.initiate_login(strategy, state)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    response = RedirectResponse(url=auth_url, status_code=status.HTTP_302_FOUND)
    if get_api_key:
        set_cookie(
            response,
            settings,
            key=api_key_cookie_name(settings.auth.base_path),
            value=get_api_key,
            max_age=settings.auth.api_key_cookie_max_age_minutes * 60,
        )
    return response


@router.get("/{strategy}/return")
async def complete_login(
    strategy: AuthStrategy,
    code: str,
    state: str,
    request: Request,
    complete_login_use_case: FromDishka[CompleteLoginUseCase],
    settings: FromDishka[Settings],
) -> RedirectResponse:
    """Handle the provider callback and sign the user in.

    Success redirects to the login result's target and sets a new
    remember-me cookie when one was issued. Rejections redirect to the
    frontend error page with the error code and the user-facing message.
    The API-key request cookie is always dropped.

    Example:
        GET /auth/github/return?code=abc123&state=xyz789

        Redirects to: /app#login
        Sets cookie: remember_me
    """
    base_path = settings.auth.base_path
    session = SessionContext(
        remember_me_token=read_remember_me(request, settings),
        api_key_request_token=request.cookies.get(api_key_cookie_name(base_path)),
    )
    ip_address = request.client.host if request.client else None

    try:
        result = await complete_login_use_case.execute(
            CompleteLoginRequest(
                strategy=strategy,
                code=code,
                state=state,
                session=session,
                ip_address=ip_address,
            )
        )
    except ValueError as e:
        logger.error(f"OAuth error during {strategy.value} callback: {str(e)}")
        response = _error_redirect(settings, "auth_failed", str(e))
    except Exception as e:
        logger.exception(f"Unexpected error during {strategy.value} callback: {str(e)}")
        response = _error_redirect(
            settings, "unexpected", f"Error trying to login using {strategy.value}"
        )
    else:
        response = _login_response(result, settings)

    response.delete_cookie(key=api_key_cookie_name(base_path), path="/")
    return response


def _login_response(result: LoginResult, settings: Settings) -> RedirectResponse:
    base_path = settings.auth.base_path
    outcome = result.outcome

    if isinstance(outcome, Rejected):
        logger.info(f"Login rejected: {outcome.code}")
        response = _error_redirect(settings, outcome.code, outcome.reason)
        if isinstance(outcome.error, MalformedTokenError):
            response.delete_cookie(key=remember_me_cookie_name(base_path), path="/")
        return response

    logger.info(f"Login succeeded: {outcome.kind.value}")
    response = RedirectResponse(url=result.target, status_code=status.HTTP_302_FOUND)
    if result.remember_me_cookie:
        set_cookie(
            response,
            settings,
            key=remember_me_cookie_name(base_path),
            value=result.remember_me_cookie,
            max_age=settings.auth.remember_me_ttl_seconds,
        )
    return response
