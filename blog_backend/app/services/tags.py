import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.blog import Tag

logger = logging.getLogger("blog.tags")


def normalize_tag_names(names) -> list[str]:
    normalized: list[str] = []
    for raw in names or []:
        if not raw or not raw.strip():
            continue
        name = raw.strip().upper()
        if name not in normalized:
            normalized.append(name)
    return normalized


async def resolve_tags(db: AsyncSession, names) -> list[Tag]:
    """Find-or-create one tag per distinct normalized name.

    New tags are flushed, not committed, so they land in the caller's
    transaction together with the post that references them.
    """
    tags: list[Tag] = []
    for name in normalize_tag_names(names):
        tag = (await db.execute(select(Tag).where(Tag.name == name))).scalar_one_or_none()
        if not tag:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
            logger.info("TAG_CREATE id=%s name=%s", tag.id, name)
        tags.append(tag)
    return tags
