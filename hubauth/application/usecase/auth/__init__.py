"""Authentication use cases."""

from .complete_login import CompleteLoginRequest, CompleteLoginUseCase
from .reconcile_identity import (
    LoginResult,
    LoginState,
    ReconcileIdentityUseCase,
    ReconcileRequest,
)

__all__ = [
    "CompleteLoginRequest",
    "CompleteLoginUseCase",
    "LoginResult",
    "LoginState",
    "ReconcileIdentityUseCase",
    "ReconcileRequest",
]
