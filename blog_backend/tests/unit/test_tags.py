import pytest
from sqlalchemy import func, select

from app.services.tags import normalize_tag_names, resolve_tags
from models.blog import Tag


def test_normalize_trims_uppercases_and_dedupes():
    assert normalize_tag_names(["tech", " TECH ", "Tech", "", "  ", "python"]) == ["TECH", "PYTHON"]


def test_normalize_handles_none():
    assert normalize_tag_names(None) == []


@pytest.mark.asyncio
async def test_resolve_collapses_variants_to_one_tag(db):
    tags = await resolve_tags(db, ["tech", " TECH ", "Tech"])
    await db.commit()

    assert [t.name for t in tags] == ["TECH"]
    count = (await db.execute(select(func.count(Tag.id)))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_resolve_is_idempotent(db):
    first = await resolve_tags(db, ["tech", "news"])
    await db.commit()
    second = await resolve_tags(db, [" NEWS", "tech ", "Tech"])
    await db.commit()

    assert {t.id for t in first} == {t.id for t in second}
    count = (await db.execute(select(func.count(Tag.id)))).scalar_one()
    assert count == 2


@pytest.mark.asyncio
async def test_resolve_mixes_existing_and_new(db):
    db.add(Tag(name="EXISTING"))
    await db.commit()

    tags = await resolve_tags(db, ["existing", "fresh"])
    await db.commit()

    assert [t.name for t in tags] == ["EXISTING", "FRESH"]
    assert all(t.id is not None for t in tags)
