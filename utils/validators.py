"""
Input validators for registration, profile updates and posts.

Each validator raises ``ValidationError`` with the first problem found.
"""

from __future__ import annotations

import re
from typing import Optional

from auth.password import MAX_PASSWORD_BYTES
from utils.errors import ValidationError
from utils.schemas import RegisterRequest, UpdateProfileRequest

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

MIN_PASSWORD_LENGTH = 8
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 100


def validate_email(email: str) -> bool:
    return EMAIL_RE.match(email) is not None


def _check_email(email: str) -> None:
    if not validate_email(email):
        raise ValidationError("Invalid email format")
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError("Email is too long")


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")


def _check_name(name: str) -> None:
    if not name.strip():
        raise ValidationError("Name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError("Name is too long")


def validate_registration(req: RegisterRequest) -> None:
    _check_email(req.email)
    _check_password(req.password)
    _check_name(req.name)


def validate_profile_update(req: UpdateProfileRequest) -> None:
    """Apply the registration rules to whichever fields were supplied."""
    if req.email is not None:
        _check_email(req.email)
    if req.password is not None:
        _check_password(req.password)
    if req.name is not None:
        _check_name(req.name)


def validate_post_fields(title: Optional[str], content: Optional[str]) -> None:
    if title is not None and not title.strip():
        raise ValidationError("Post title cannot be empty")
    if content is not None and not content.strip():
        raise ValidationError("Post content cannot be empty")
