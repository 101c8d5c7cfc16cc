"""
REST API routes — greeting, posts and the public user listing.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id
from database.repositories import PostRepository, UserRepository
from utils.errors import InternalError, NotFoundOrForbidden
from utils.schemas import (
    ApiResponse,
    CreatePostRequest,
    PostOut,
    UpdatePostRequest,
)
from utils.validators import validate_post_fields

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Hello, World!"


# ── Users ────────────────────────────────────────────────────────────


@router.get("/users", response_model=ApiResponse, tags=["users"])
async def list_users(session: AsyncSession = Depends(db_session)) -> ApiResponse:
    """Public listing of every user's public projection, newest first."""
    users = await UserRepository(session).list_all()
    return ApiResponse(message=f"Retrieved {len(users)} users", data=users)


# ── Posts ────────────────────────────────────────────────────────────


@router.get("/posts", response_model=ApiResponse, tags=["posts"])
async def list_posts(session: AsyncSession = Depends(db_session)) -> ApiResponse:
    posts = await PostRepository(session).list_all_with_owner()
    return ApiResponse(message=f"Retrieved {len(posts)} posts", data=posts)


@router.post("/posts", response_model=ApiResponse, tags=["posts"])
async def create_post(
    req: CreatePostRequest,
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ApiResponse:
    validate_post_fields(req.title, req.content)

    if await UserRepository(session).find_by_id(user_id) is None:
        raise NotFoundOrForbidden("User not found")

    posts = PostRepository(session)
    post = await posts.create(title=req.title, content=req.content, author_id=user_id)
    logger.info("Post %s created by %s", post.id, user_id)

    created = await posts.find_with_owner(post.id)
    if created is None:
        raise InternalError("Post created but failed to retrieve with author info")

    return ApiResponse(message=f"Post '{post.title}' created successfully", data=created)


# Declared before /posts/{post_id} so "my" is not parsed as an id.
@router.get("/posts/my", response_model=ApiResponse, tags=["posts"])
async def list_my_posts(
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ApiResponse:
    posts = await PostRepository(session).list_by_owner(user_id)
    return ApiResponse(
        message=f"Retrieved {len(posts)} posts",
        data=[PostOut.model_validate(post) for post in posts],
    )


@router.get("/posts/{post_id}", response_model=ApiResponse, tags=["posts"])
async def get_post(
    post_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> ApiResponse:
    post = await PostRepository(session).find_with_owner(post_id)
    if post is None:
        raise NotFoundOrForbidden("Post not found")
    return ApiResponse(message="Post retrieved successfully", data=post)


@router.put("/posts/{post_id}", response_model=ApiResponse, tags=["posts"])
async def update_post(
    post_id: uuid.UUID,
    req: UpdatePostRequest,
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ApiResponse:
    validate_post_fields(req.title, req.content)

    posts = PostRepository(session)
    post = await posts.update(post_id, user_id, title=req.title, content=req.content)
    if post is None:
        raise NotFoundOrForbidden("Post not found or you don't have permission to update it")
    logger.info("Post %s updated by %s", post_id, user_id)

    updated = await posts.find_with_owner(post.id)
    if updated is None:
        raise InternalError("Post updated but failed to retrieve with author info")

    return ApiResponse(message=f"Post '{post.title}' updated successfully", data=updated)


@router.delete("/posts/{post_id}", response_model=ApiResponse, tags=["posts"])
async def delete_post(
    post_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ApiResponse:
    if not await PostRepository(session).delete(post_id, user_id):
        raise NotFoundOrForbidden("Post not found or you don't have permission to delete it")
    logger.info("Post %s deleted by %s", post_id, user_id)
    return ApiResponse(message="Post deleted successfully")
