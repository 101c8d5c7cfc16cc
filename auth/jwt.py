"""
JWT-style token creation and verification.

Tokens are base64-encoded JSON claims signed with HMAC-SHA256.
The secret is handed to ``TokenService`` at construction; see
``main.create_app`` where it is built from ``Settings.jwt_secret``.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError


class InvalidTokenError(Exception):
    """Bad format, bad signature and expiry all end up here."""


class TokenClaims(BaseModel):
    sub: str
    iat: int
    exp: int


class TokenService:
    def __init__(self, secret: str, expiry_seconds: int = 86400):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret.encode()
        self.expiry_seconds = expiry_seconds

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def create_token(self, user_id: str, now: Optional[int] = None) -> str:
        """Create a signed token containing ``user_id``, issue time and expiry."""
        issued_at = int(time.time()) if now is None else now
        claims = TokenClaims(
            sub=str(user_id),
            iat=issued_at,
            exp=issued_at + self.expiry_seconds,
        )
        raw = json.dumps(claims.model_dump()).encode()
        return urlsafe_b64encode(raw).decode() + "." + self._sign(raw)

    def verify_token(self, token: str) -> TokenClaims:
        """
        Verify token and return its claims.

        Raises ``InvalidTokenError`` on malformed, tampered or expired tokens.
        """
        parts = token.split(".")
        if len(parts) != 2:
            raise InvalidTokenError("bad format")
        try:
            raw = urlsafe_b64decode(parts[0].encode())
        except (binascii.Error, ValueError) as exc:
            raise InvalidTokenError("bad encoding") from exc

        if not hmac.compare_digest(parts[1].encode(), self._sign(raw).encode()):
            raise InvalidTokenError("bad signature")

        try:
            claims = TokenClaims.model_validate(json.loads(raw))
        except (ValueError, PydanticValidationError) as exc:
            raise InvalidTokenError("bad claims") from exc

        if claims.exp < time.time():
            raise InvalidTokenError("token expired")
        return claims
