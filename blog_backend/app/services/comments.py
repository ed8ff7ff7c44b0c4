import logging

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import DatabaseOperationError, ForbiddenError, InvalidArgumentError, NotFoundError
from app.security import mask_user_id
from app.services.views import build_comment_reads, comment_to_read, load_user_names
from models.blog import Comment, Like, Post
from schemas.blog import CommentCreate, CommentPatchOperation, CommentRead, CommentUpdate

logger = logging.getLogger("blog.comments")

PATCHABLE_PATHS = {"/content"}
PATCH_OPS = {"replace", "add"}


async def _get_comment_or_404(db: AsyncSession, comment_id: int) -> Comment:
    comment = (await db.execute(select(Comment).where(Comment.id == comment_id))).scalar_one_or_none()
    if not comment:
        raise NotFoundError(f"Comment with ID {comment_id} not found.")
    return comment


def _require_owner(comment: Comment, user_id: str, action: str) -> None:
    if comment.user_id != user_id:
        logger.warning(
            "COMMENT_DENY action=%s comment=%s user=%s",
            action,
            comment.id,
            mask_user_id(user_id),
        )
        raise ForbiddenError()


async def create_comment(db: AsyncSession, payload: CommentCreate, user_id: str) -> CommentRead:
    post_exists = (await db.execute(select(Post.id).where(Post.id == payload.post_id))).scalar_one_or_none()
    if post_exists is None:
        raise NotFoundError(f"Blog post ID: {payload.post_id} not found.")
    if payload.parent_comment_id is not None:
        # the parent must live on the same post, not merely exist
        parent = (await db.execute(
            select(Comment.id).where(
                Comment.id == payload.parent_comment_id,
                Comment.post_id == payload.post_id,
            )
        )).scalar_one_or_none()
        if parent is None:
            raise NotFoundError(f"Parent comment with ID: {payload.parent_comment_id} not found.")

    comment = Comment(
        post_id=payload.post_id,
        parent_comment_id=payload.parent_comment_id,
        user_id=user_id,
        content=payload.content,
    )
    db.add(comment)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("COMMENT_CREATE_FAILED post=%s", payload.post_id)
        raise DatabaseOperationError("Failed to create comment") from exc
    await db.refresh(comment)
    logger.info(
        "COMMENT_CREATE id=%s post=%s parent=%s user=%s",
        comment.id,
        comment.post_id,
        comment.parent_comment_id,
        mask_user_id(user_id),
    )
    names = await load_user_names(db, [user_id])
    return comment_to_read(comment, names, [])


async def get_comment(db: AsyncSession, comment_id: int) -> CommentRead:
    comment = await _get_comment_or_404(db, comment_id)
    return (await build_comment_reads(db, [comment]))[0]


async def list_comments_for_post(db: AsyncSession, post_id: int) -> list[CommentRead]:
    post_exists = (await db.execute(select(Post.id).where(Post.id == post_id))).scalar_one_or_none()
    if post_exists is None:
        raise NotFoundError(f"Blog Post with ID {post_id} not found.")
    rows = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id, Comment.parent_comment_id.is_(None))
        .order_by(Comment.created_at, Comment.id)
    )
    comments = list(rows.scalars().all())
    if not comments:
        # kept for client compatibility: an empty thread is reported as missing
        raise NotFoundError(f"No comments found for Blog Post ID {post_id}.")
    return await build_comment_reads(db, comments)


def comment_update_from_patch(operations: list[CommentPatchOperation]) -> CommentUpdate:
    """Fold a JSON Patch document into a content-only update."""
    data = {}
    for operation in operations:
        if operation.path.strip().lower() not in PATCHABLE_PATHS:
            raise InvalidArgumentError(f"Unsupported patch path: {operation.path}")
        if operation.op.strip().lower() not in PATCH_OPS:
            raise InvalidArgumentError(f"Unsupported patch operation: {operation.op}")
        data["content"] = operation.value
    try:
        return CommentUpdate(**data)
    except ValidationError as exc:
        raise InvalidArgumentError("Comment length should be between 1 and 500.") from exc


async def update_comment(db: AsyncSession, comment_id: int, patch: CommentUpdate, user_id: str) -> CommentRead:
    comment = await _get_comment_or_404(db, comment_id)
    _require_owner(comment, user_id, "update")
    data = patch.model_dump(exclude_unset=True)
    if "content" in data:
        if data["content"] is None:
            raise InvalidArgumentError("Comment cannot be empty.")
        comment.content = data["content"]
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("COMMENT_UPDATE_FAILED id=%s", comment_id)
        raise DatabaseOperationError("Failed to update comment") from exc
    logger.info("COMMENT_UPDATE id=%s user=%s", comment_id, mask_user_id(user_id))
    return (await build_comment_reads(db, [comment]))[0]


async def collect_thread_levels(db: AsyncSession, root_ids: list[int]) -> list[list[int]]:
    """Comment ids grouped by depth, starting with ``root_ids``."""
    levels: list[list[int]] = []
    frontier = list(root_ids)
    while frontier:
        levels.append(frontier)
        rows = await db.execute(select(Comment.id).where(Comment.parent_comment_id.in_(frontier)))
        frontier = [cid for (cid,) in rows.all()]
    return levels


async def delete_comment_levels(db: AsyncSession, levels: list[list[int]]) -> None:
    """Delete likes, then comments deepest level first; caller commits."""
    all_ids = [cid for level in levels for cid in level]
    if not all_ids:
        return
    await db.execute(delete(Like).where(Like.comment_id.in_(all_ids)))
    for level in reversed(levels):
        await db.execute(delete(Comment).where(Comment.id.in_(level)))


async def delete_comment(db: AsyncSession, comment_id: int, user_id: str) -> None:
    comment = await _get_comment_or_404(db, comment_id)
    _require_owner(comment, user_id, "delete")
    try:
        levels = await collect_thread_levels(db, [comment.id])
        await delete_comment_levels(db, levels)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("COMMENT_DELETE_FAILED id=%s", comment_id)
        raise DatabaseOperationError("Failed to delete comment") from exc
    logger.info(
        "COMMENT_DELETE id=%s removed=%s user=%s",
        comment_id,
        sum(len(level) for level in levels),
        mask_user_id(user_id),
    )
