"""
Pydantic schemas for the blog API: request bodies, public projections
and the two response envelopes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


# ═══════════════════════════════════════════════════════════════════════════════
# Envelopes
# ═══════════════════════════════════════════════════════════════════════════════


class ApiResponse(BaseModel):
    message: str
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    error: str
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(BaseModel):
    """A user as it may leave the API. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class LoginData(BaseModel):
    token: str
    user: UserPublic


# ═══════════════════════════════════════════════════════════════════════════════
# Posts
# ═══════════════════════════════════════════════════════════════════════════════


class CreatePostRequest(BaseModel):
    title: str
    content: str


class UpdatePostRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class PostWithAuthor(BaseModel):
    """A post joined with its author's public projection."""

    id: uuid.UUID
    title: str
    content: str
    author: UserPublic
    created_at: datetime
    updated_at: datetime
