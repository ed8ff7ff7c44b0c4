from datetime import datetime
from sqlalchemy import inspect, text


async def ensure_migrations_table(conn):
    await conn.execute(text(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            name VARCHAR(128) PRIMARY KEY,
            applied_at VARCHAR(64)
        )
        """
    ))


async def has_migration(conn, name: str) -> bool:
    result = await conn.execute(text("SELECT 1 FROM schema_migrations WHERE name = :name"), {"name": name})
    return result.first() is not None


async def mark_migration(conn, name: str):
    await conn.execute(text("INSERT INTO schema_migrations(name, applied_at) VALUES (:name, :applied_at)"), {
        "name": name,
        "applied_at": datetime.utcnow().isoformat()
    })


async def column_exists(conn, table: str, column: str) -> bool:
    columns = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_columns(table))
    return any(col.get("name") == column for col in columns)


async def add_updated_at_to_posts(conn):
    if await column_exists(conn, "posts", "updated_at"):
        return
    await conn.execute(text("ALTER TABLE posts ADD COLUMN updated_at DATETIME"))
    await conn.execute(text("UPDATE posts SET updated_at = created_at WHERE updated_at IS NULL"))


async def normalize_tag_names(conn):
    # tags written before the resolver normalized names; names that collide
    # once normalized are merged into the lowest id first
    rows = await conn.execute(text("SELECT id, name FROM tags ORDER BY id"))
    keep_ids: dict[str, int] = {}
    for tag_id, name in rows.all():
        key = (name or "").strip().upper()
        keep_id = keep_ids.setdefault(key, tag_id)
        if keep_id == tag_id:
            continue
        params = {"keep": keep_id, "drop": tag_id}
        await conn.execute(text(
            """
            DELETE FROM post_tags
            WHERE tag_id = :drop
              AND post_id IN (SELECT post_id FROM post_tags WHERE tag_id = :keep)
            """
        ), params)
        await conn.execute(text("UPDATE post_tags SET tag_id = :keep WHERE tag_id = :drop"), params)
        await conn.execute(text("DELETE FROM tags WHERE id = :drop"), params)
    await conn.execute(text("UPDATE tags SET name = UPPER(TRIM(name)) WHERE name <> UPPER(TRIM(name))"))


MIGRATIONS = [
    ("202501_add_updated_at_to_posts", add_updated_at_to_posts),
    ("202501_normalize_tag_names", normalize_tag_names),
]


async def run_migrations(conn):
    await ensure_migrations_table(conn)
    for name, handler in MIGRATIONS:
        if await has_migration(conn, name):
            continue
        await handler(conn)
        await mark_migration(conn, name)
