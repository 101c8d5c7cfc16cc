"""
Auth API routes — register, login, profile.

Route prefix: /auth
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id, get_settings, get_token_service
from auth.jwt import TokenService
from auth.password import hash_password, verify_password
from config.settings import Settings
from database.repositories import UserRepository
from utils.errors import ConflictError, InternalError, NotFoundOrForbidden, UnauthorizedError
from utils.schemas import (
    ApiResponse,
    LoginData,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserPublic,
)
from utils.validators import validate_profile_update, validate_registration

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

_INVALID_CREDENTIALS = "Invalid email or password"


def _hash(password: str, settings: Settings) -> str:
    try:
        return hash_password(password, rounds=settings.bcrypt_rounds)
    except ValueError as exc:
        logger.error("Failed to hash password: %s", exc)
        raise InternalError("Failed to process password") from exc


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", response_model=ApiResponse)
async def register(
    req: RegisterRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    """Register a new user."""
    validate_registration(req)

    users = UserRepository(session)
    if await users.find_by_email(req.email) is not None:
        raise ConflictError("User with this email already exists")

    user = await users.create(
        name=req.name,
        email=req.email,
        password_hash=_hash(req.password, settings),
    )
    logger.info("Registered user %s (%s)", user.name, user.id)

    return ApiResponse(
        message=f"User: {user.name} registered successfully",
        data=UserPublic.model_validate(user),
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    req: LoginRequest,
    session: AsyncSession = Depends(db_session),
    tokens: TokenService = Depends(get_token_service),
) -> ApiResponse:
    """Login with email + password."""
    user = await UserRepository(session).find_by_email(req.email)
    if user is None:
        raise UnauthorizedError(_INVALID_CREDENTIALS)

    try:
        valid = verify_password(req.password, user.password_hash)
    except ValueError as exc:
        logger.error("Failed to verify password for %s: %s", user.id, exc)
        raise InternalError("Failed to verify password") from exc
    if not valid:
        raise UnauthorizedError(_INVALID_CREDENTIALS)

    token = tokens.create_token(str(user.id))
    logger.info("Login: %s (%s)", user.name, user.id)

    return ApiResponse(
        message="Login successful",
        data=LoginData(token=token, user=UserPublic.model_validate(user)),
    )


@router.get("/profile", response_model=ApiResponse)
async def get_profile(
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ApiResponse:
    user = await UserRepository(session).find_by_id(user_id)
    if user is None:
        raise NotFoundOrForbidden("User not found")
    return ApiResponse(
        message="Profile retrieved successfully",
        data=UserPublic.model_validate(user),
    )


@router.put("/profile", response_model=ApiResponse)
async def update_profile(
    req: UpdateProfileRequest,
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    """Partially update the caller's own profile."""
    validate_profile_update(req)
    users = UserRepository(session)

    if req.email is not None:
        holder = await users.find_by_email(req.email)
        if holder is not None and holder.id != user_id:
            raise ConflictError("User with this email already exists")

    password_hash = _hash(req.password, settings) if req.password is not None else None

    user = await users.update(
        user_id,
        name=req.name,
        email=req.email,
        password_hash=password_hash,
    )
    if user is None:
        raise NotFoundOrForbidden("User not found")

    logger.info("Profile updated: %s", user.id)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserPublic.model_validate(user),
    )
