"""Common authentication dependencies for FastAPI routers."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..api.errors import unauthorized_error
from .auth_service import AuthError, TokenService

security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    try:
        return request.app.state.token_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("TokenService is not configured") from exc


def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    service: TokenService = Depends(get_token_service),
) -> UUID:
    if credentials is None:
        raise unauthorized_error("Couldn't find JWT")

    try:
        return service.validate(credentials.credentials)
    except AuthError as exc:
        raise unauthorized_error("Couldn't validate JWT") from exc


__all__ = ["get_token_service", "require_user"]
