import pytest
from sqlalchemy import text

from app.migrations import MIGRATIONS, column_exists, normalize_tag_names, run_migrations


@pytest.mark.asyncio
async def test_migrations_are_recorded_once(engine):
    async with engine.begin() as conn:
        await run_migrations(conn)
        rows = await conn.execute(text("SELECT name FROM schema_migrations ORDER BY name"))
        names = [r[0] for r in rows]

    assert names == sorted(name for name, _ in MIGRATIONS)


@pytest.mark.asyncio
async def test_column_exists(engine):
    async with engine.connect() as conn:
        assert await column_exists(conn, "posts", "updated_at")
        assert not await column_exists(conn, "posts", "slug")


@pytest.mark.asyncio
async def test_normalize_tag_names_rewrites_legacy_rows(engine):
    async with engine.begin() as conn:
        await conn.execute(text("INSERT INTO tags(name) VALUES (' legacy ')"))
        await normalize_tag_names(conn)
        rows = await conn.execute(text("SELECT name FROM tags"))
        assert [r[0] for r in rows] == ["LEGACY"]


@pytest.mark.asyncio
async def test_normalize_tag_names_merges_colliding_rows(engine):
    async with engine.begin() as conn:
        await conn.execute(text(
            "INSERT INTO posts(id, user_id, title, content, category) VALUES "
            "(1, 'u1', 'First', 'Some content', 'OTHER'), (2, 'u1', 'Second', 'Some content', 'OTHER')"
        ))
        await conn.execute(text("INSERT INTO tags(id, name) VALUES (1, 'tech'), (2, 'TECH'), (3, ' Tech '), (4, 'food')"))
        await conn.execute(text(
            "INSERT INTO post_tags(post_id, tag_id) VALUES (1, 1), (1, 2), (2, 3), (2, 4)"
        ))

        await normalize_tag_names(conn)

        tags = await conn.execute(text("SELECT id, name FROM tags ORDER BY id"))
        assert [tuple(r) for r in tags] == [(1, "TECH"), (4, "FOOD")]
        links = await conn.execute(text("SELECT post_id, tag_id FROM post_tags ORDER BY post_id, tag_id"))
        assert [tuple(r) for r in links] == [(1, 1), (2, 1), (2, 4)]
