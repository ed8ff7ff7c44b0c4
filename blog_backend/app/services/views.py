"""Explicit conversions from rows to read models, plus the bulk loaders that
attach user names, likes, replies and tags by id maps."""

import json
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.blog import BlogCategory, Comment, Like, Post, Tag, post_tags
from models.user import UserProfile
from schemas.blog import CommentRead, LikeRead, PostRead, TagRead


def decode_image_urls(raw: str | None) -> list[str]:
    try:
        value = json.loads(raw or "[]")
    except ValueError:
        return []
    return [str(item) for item in value] if isinstance(value, list) else []


def encode_image_urls(urls: list[str]) -> str:
    return json.dumps(list(urls or []), ensure_ascii=False)


async def load_user_names(db: AsyncSession, user_ids) -> dict[str, str]:
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    rows = await db.execute(select(UserProfile).where(UserProfile.user_id.in_(ids)))
    return {r.user_id: r.user_name for r in rows.scalars().all()}


async def load_post_likes(db: AsyncSession, post_ids) -> dict[int, list[Like]]:
    likes_map: dict[int, list[Like]] = defaultdict(list)
    if post_ids:
        rows = await db.execute(
            select(Like).where(Like.post_id.in_(post_ids)).order_by(Like.created_at.desc(), Like.id.desc())
        )
        for like in rows.scalars().all():
            likes_map[like.post_id].append(like)
    return likes_map


async def load_comment_likes(db: AsyncSession, comment_ids) -> dict[int, list[Like]]:
    likes_map: dict[int, list[Like]] = defaultdict(list)
    if comment_ids:
        rows = await db.execute(
            select(Like).where(Like.comment_id.in_(comment_ids)).order_by(Like.created_at.desc(), Like.id.desc())
        )
        for like in rows.scalars().all():
            likes_map[like.comment_id].append(like)
    return likes_map


async def load_replies(db: AsyncSession, parent_ids) -> dict[int, list[Comment]]:
    replies_map: dict[int, list[Comment]] = defaultdict(list)
    if parent_ids:
        rows = await db.execute(
            select(Comment)
            .where(Comment.parent_comment_id.in_(parent_ids))
            .order_by(Comment.created_at, Comment.id)
        )
        for reply in rows.scalars().all():
            replies_map[reply.parent_comment_id].append(reply)
    return replies_map


async def load_post_tags(db: AsyncSession, post_ids) -> dict[int, list[Tag]]:
    tags_map: dict[int, list[Tag]] = defaultdict(list)
    if post_ids:
        rows = await db.execute(
            select(post_tags.c.post_id, Tag)
            .join(Tag, Tag.id == post_tags.c.tag_id)
            .where(post_tags.c.post_id.in_(post_ids))
            .order_by(Tag.name)
        )
        for post_id, tag in rows.all():
            tags_map[post_id].append(tag)
    return tags_map


async def load_comment_counts(db: AsyncSession, post_ids) -> dict[int, int]:
    if not post_ids:
        return {}
    rows = await db.execute(
        select(Comment.post_id, func.count(Comment.id)).where(Comment.post_id.in_(post_ids)).group_by(Comment.post_id)
    )
    return {post_id: count for post_id, count in rows.all()}


def tag_to_read(tag: Tag) -> TagRead:
    return TagRead(id=tag.id, name=tag.name)


def like_to_read(like: Like, names: dict[str, str]) -> LikeRead:
    return LikeRead(user_id=like.user_id, user_name=names.get(like.user_id), created_at=like.created_at)


def comment_to_read(
    comment: Comment,
    names: dict[str, str],
    likes: list[Like],
    replies: list[CommentRead] | None = None,
) -> CommentRead:
    return CommentRead(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        created_at=comment.created_at,
        user_id=comment.user_id,
        user_name=names.get(comment.user_id),
        like_count=len(likes),
        likes=[like_to_read(like, names) for like in likes],
        parent_comment_id=comment.parent_comment_id,
        replies=replies or [],
    )


def post_to_read(
    post: Post,
    names: dict[str, str],
    tags: list[Tag],
    likes: list[Like],
    comment_count: int = 0,
    comments: list[CommentRead] | None = None,
) -> PostRead:
    return PostRead(
        id=post.id,
        title=post.title,
        content=post.content,
        category=BlogCategory(post.category),
        created_at=post.created_at,
        updated_at=post.updated_at or post.created_at,
        user_id=post.user_id,
        user_name=names.get(post.user_id),
        like_count=len(likes),
        comment_count=comment_count,
        tags=[tag_to_read(t) for t in tags],
        image_urls=decode_image_urls(post.image_urls),
        comments=comments or [],
    )


async def build_comment_reads(db: AsyncSession, comments: list[Comment], *, with_replies: bool = True) -> list[CommentRead]:
    """Hydrate comments with likes and, one level deep, their direct replies."""
    if not comments:
        return []
    parent_ids = [c.id for c in comments]
    replies_map = await load_replies(db, parent_ids) if with_replies else {}
    all_comments = list(comments) + [r for rs in replies_map.values() for r in rs]
    likes_map = await load_comment_likes(db, [c.id for c in all_comments])
    names = await load_user_names(
        db,
        [c.user_id for c in all_comments] + [l.user_id for ls in likes_map.values() for l in ls],
    )
    result = []
    for c in comments:
        replies = [comment_to_read(r, names, likes_map.get(r.id, [])) for r in replies_map.get(c.id, [])]
        result.append(comment_to_read(c, names, likes_map.get(c.id, []), replies))
    return result


async def build_post_reads(db: AsyncSession, posts: list[Post], *, with_comments: bool = False) -> list[PostRead]:
    if not posts:
        return []
    post_ids = [p.id for p in posts]
    tags_map = await load_post_tags(db, post_ids)
    likes_map = await load_post_likes(db, post_ids)
    counts = await load_comment_counts(db, post_ids)
    comments_map: dict[int, list[CommentRead]] = defaultdict(list)
    if with_comments:
        rows = await db.execute(
            select(Comment)
            .where(Comment.post_id.in_(post_ids), Comment.parent_comment_id.is_(None))
            .order_by(Comment.created_at, Comment.id)
        )
        for c in await build_comment_reads(db, list(rows.scalars().all())):
            comments_map[c.post_id].append(c)
    names = await load_user_names(
        db,
        [p.user_id for p in posts] + [l.user_id for ls in likes_map.values() for l in ls],
    )
    return [
        post_to_read(
            p,
            names,
            tags_map.get(p.id, []),
            likes_map.get(p.id, []),
            counts.get(p.id, 0),
            comments_map.get(p.id, []),
        )
        for p in posts
    ]
