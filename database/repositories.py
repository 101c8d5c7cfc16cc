"""
Data access for users and posts.

Repositories wrap a request-scoped ``AsyncSession``.  Ids and timestamps
are generated here, never taken from the caller.  Write methods commit
so the caller sees the outcome of the statement before responding.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Post, User, utc_now
from utils.errors import ConflictError
from utils.schemas import PostWithAuthor, UserPublic

logger = logging.getLogger(__name__)


def _to_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return uuid.UUID(value) if isinstance(value, str) else value


def _apply_changes(entity: Any, changes: Dict[str, Any]) -> bool:
    """Copy every differing, non-``None`` value onto *entity*; report whether any did."""
    changed = False
    for field, value in changes.items():
        if value is None or getattr(entity, field) == value:
            continue
        setattr(entity, field, value)
        changed = True
    return changed


# ── Users ────────────────────────────────────────────────────────────


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, email: str, password_hash: str) -> User:
        now = utc_now()
        user = User(
            id=uuid.uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("User with this email already exists") from exc
        logger.debug("User created: id=%s", user.id)
        return user

    async def find_by_id(self, user_id: str | uuid.UUID) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.id == _to_uuid(user_id))
        )
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        user_id: str | uuid.UUID,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[User]:
        """
        Partially update a user.

        Returns ``None`` if the user does not exist.  When no supplied value
        differs from the stored one the user is returned untouched.
        """
        user = await self.find_by_id(user_id)
        if user is None:
            logger.debug("Update skipped, user %s not found", user_id)
            return None

        changes = {"name": name, "email": email, "password_hash": password_hash}
        if not _apply_changes(user, changes):
            return user

        user.updated_at = utc_now()
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("User with this email already exists") from exc
        logger.debug("User %s updated", user.id)
        return user

    async def delete(self, user_id: str | uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(User).where(User.id == _to_uuid(user_id))
        )
        await self.session.commit()
        return result.rowcount > 0

    async def list_all(self) -> List[UserPublic]:
        result = await self.session.execute(
            select(User).order_by(User.created_at.desc())
        )
        return [UserPublic.model_validate(row) for row in result.scalars().all()]


# ── Posts ────────────────────────────────────────────────────────────


class PostRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _with_author(post: Post, author: User) -> PostWithAuthor:
        return PostWithAuthor(
            id=post.id,
            title=post.title,
            content=post.content,
            author=UserPublic.model_validate(author),
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    def _joined(self):
        return select(Post, User).join(User, Post.author_id == User.id)

    async def create(self, title: str, content: str, author_id: str | uuid.UUID) -> Post:
        now = utc_now()
        post = Post(
            id=uuid.uuid4(),
            title=title,
            content=content,
            author_id=_to_uuid(author_id),
            created_at=now,
            updated_at=now,
        )
        self.session.add(post)
        await self.session.commit()
        logger.debug("Post created: id=%s", post.id)
        return post

    async def find_by_id(self, post_id: str | uuid.UUID) -> Optional[Post]:
        result = await self.session.execute(
            select(Post).where(Post.id == _to_uuid(post_id))
        )
        return result.scalar_one_or_none()

    async def find_with_owner(self, post_id: str | uuid.UUID) -> Optional[PostWithAuthor]:
        result = await self.session.execute(
            self._joined().where(Post.id == _to_uuid(post_id))
        )
        row = result.one_or_none()
        if row is None:
            return None
        return self._with_author(*row)

    async def list_all(self) -> List[Post]:
        result = await self.session.execute(
            select(Post).order_by(Post.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all_with_owner(self) -> List[PostWithAuthor]:
        result = await self.session.execute(
            self._joined().order_by(Post.created_at.desc())
        )
        return [self._with_author(post, author) for post, author in result.all()]

    async def list_by_owner(self, author_id: str | uuid.UUID) -> List[Post]:
        result = await self.session.execute(
            select(Post)
            .where(Post.author_id == _to_uuid(author_id))
            .order_by(Post.created_at.desc())
        )
        return list(result.scalars().all())

    async def _find_owned(self, post_id: str | uuid.UUID, author_id: str | uuid.UUID) -> Optional[Post]:
        """Return the post only if *author_id* owns it, logging why not otherwise."""
        post = await self.find_by_id(post_id)
        if post is None:
            logger.info("Post %s not found", post_id)
            return None
        if post.author_id != _to_uuid(author_id):
            logger.info("Post %s is owned by another user, denied to %s", post_id, author_id)
            return None
        return post

    async def update(
        self,
        post_id: str | uuid.UUID,
        author_id: str | uuid.UUID,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Optional[Post]:
        """
        Partially update a post owned by *author_id*.

        Returns ``None`` both when the post is missing and when someone
        else owns it.
        """
        post = await self._find_owned(post_id, author_id)
        if post is None:
            return None

        if not _apply_changes(post, {"title": title, "content": content}):
            return post

        post.updated_at = utc_now()
        await self.session.commit()
        logger.debug("Post %s updated", post.id)
        return post

    async def delete(self, post_id: str | uuid.UUID, author_id: str | uuid.UUID) -> bool:
        post = await self._find_owned(post_id, author_id)
        if post is None:
            return False

        result = await self.session.execute(delete(Post).where(Post.id == post.id))
        await self.session.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.debug("Post %s deleted", post.id)
        return deleted
