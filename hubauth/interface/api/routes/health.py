"""Health check route."""

from datetime import datetime, timezone

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from hubauth.config import Settings
from hubauth.domain.service import AuthService

router = APIRouter(tags=["health"], route_class=DishkaRoute)


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    git_sha: str
    environment: str
    # A deployment with only "email" has no OAuth clients registered
    strategies: list[str]


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: FromDishka[Settings], auth_service: FromDishka[AuthService]
) -> HealthResponse:
    """Liveness plus the build and the sign-in strategies on offer.

    Does not touch the database.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version="0.1.0",
        git_sha=settings.git_sha,
        environment=settings.environment,
        strategies=auth_service.configured_strategies(),
    )
