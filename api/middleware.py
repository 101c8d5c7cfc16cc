"""
Global middleware: request timing and the bearer-token auth gate.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.security.utils import get_authorization_scheme_param

from auth.jwt import InvalidTokenError, TokenService
from utils.errors import UnauthorizedError, error_response

logger = logging.getLogger(__name__)


def requires_auth(method: str, path: str) -> bool:
    """
    Decide whether a route needs the required auth variant.

    Everything else passes through the optional variant.
    """
    method = method.upper()
    return (
        path.startswith("/auth/profile")
        or (path.startswith("/posts") and method == "POST")
        or path.startswith("/posts/my")
        or (path.startswith("/posts/") and method in ("PUT", "DELETE"))
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    scheme, token = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def resolve_user_id(token_service: TokenService, token: str) -> uuid.UUID:
    """Verify *token* and return its subject as a UUID."""
    claims = token_service.verify_token(token)
    try:
        return uuid.UUID(claims.sub)
    except ValueError as exc:
        raise InvalidTokenError("subject is not a user id") from exc


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def auth_gate(request: Request, call_next):
        request.state.user_id = None
        required = requires_auth(request.method, request.url.path)
        token = extract_bearer_token(request.headers.get("Authorization"))

        if token is None:
            if required:
                logger.info("No authorization header on %s %s", request.method, request.url.path)
                return _unauthorized("No authorization header found")
            return await call_next(request)

        try:
            request.state.user_id = resolve_user_id(request.app.state.token_service, token)
        except InvalidTokenError as exc:
            logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc)
            if required:
                return _unauthorized("Invalid token")
        else:
            logger.debug("Authenticated user: %s", request.state.user_id)

        return await call_next(request)

    # registered last so it wraps the auth gate
    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response


def _unauthorized(message: str):
    return error_response(UnauthorizedError.status_code, UnauthorizedError.error, message)
