"""
FastAPI dependencies for authentication.

The auth gate in ``api.middleware`` resolves the bearer token before any
route runs and leaves the subject on ``request.state.user_id``; these
dependencies only read it back.
"""

from __future__ import annotations

import uuid
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import TokenService
from config.settings import Settings
from database.session import get_db_session
from utils.errors import UnauthorizedError


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_optional_user_id(request: Request) -> Optional[uuid.UUID]:
    """The authenticated subject, or ``None`` for anonymous callers."""
    return getattr(request.state, "user_id", None)


def get_current_user_id(request: Request) -> uuid.UUID:
    """
    The authenticated subject for routes behind the required gate.

    Raises ``UnauthorizedError`` if the route was reached without one.
    """
    user_id = get_optional_user_id(request)
    if user_id is None:
        raise UnauthorizedError("No authorization header found")
    return user_id
