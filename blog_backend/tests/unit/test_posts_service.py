from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from app.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from app.services import posts as post_service
from app.services.comments import create_comment
from app.services.likes import toggle_like
from models.blog import BlogCategory, Comment, Like, Post, Tag, post_tags
from schemas.blog import CommentCreate, PostCreate, PostUpdate

OWNER = "owner-1"
OTHER = "intruder"


def _payload(**overrides):
    data = {
        "title": "A post title",
        "content": "Long enough content",
        "category": "TECHNOLOGY",
        "tags": [],
        "image_urls": [],
    }
    data.update(overrides)
    return PostCreate(**data)


@pytest.mark.asyncio
async def test_create_hydrates_post(db):
    created = await post_service.create_post(
        db,
        _payload(
            tags=["python", " PYTHON ", "web"],
            image_urls=["https://x.com/a.png", "https://x.com/a.png", "https://x.com/b.jpg"],
        ),
        OWNER,
    )

    assert created.id is not None
    assert created.user_id == OWNER
    assert created.category == BlogCategory.TECHNOLOGY
    assert sorted(t.name for t in created.tags) == ["PYTHON", "WEB"]
    assert created.image_urls == ["https://x.com/a.png", "https://x.com/b.jpg"]
    assert created.like_count == 0
    assert created.comments == []
    assert created.created_at is not None


@pytest.mark.asyncio
async def test_create_rejects_invalid_images(db):
    with pytest.raises(InvalidArgumentError) as exc:
        await post_service.create_post(
            db, _payload(image_urls=["https://x.com/a.png", "not-a-url", "https://x.com/doc.txt"]), OWNER
        )

    assert "not-a-url" in exc.value.detail
    assert "https://x.com/doc.txt" in exc.value.detail
    assert "https://x.com/a.png" not in exc.value.detail
    assert (await db.execute(select(func.count(Post.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_create_rejects_too_many_tags_and_images(db):
    with pytest.raises(InvalidArgumentError):
        await post_service.create_post(db, _payload(tags=["a", "b", "c", "d", "e", "f"]), OWNER)
    with pytest.raises(InvalidArgumentError):
        await post_service.create_post(
            db, _payload(image_urls=[f"https://x.com/{i}.png" for i in range(9)]), OWNER
        )


def test_category_accepts_ordinal_and_name():
    assert _payload(category=0).category == BlogCategory.TECHNOLOGY
    assert _payload(category="travel").category == BlogCategory.TRAVEL
    with pytest.raises(ValueError):
        _payload(category=14)
    with pytest.raises(ValueError):
        _payload(category="gardening")


@pytest.mark.asyncio
async def test_get_post_includes_comment_tree(db):
    created = await post_service.create_post(db, _payload(), OWNER)
    root = await create_comment(db, CommentCreate(content="root", post_id=created.id), OTHER)
    await create_comment(db, CommentCreate(content="reply", post_id=created.id, parent_comment_id=root.id), OWNER)
    await toggle_like(db, OTHER, post_id=created.id)

    fetched = await post_service.get_post(db, created.id)

    assert fetched.like_count == 1
    assert fetched.comment_count == 2
    assert [c.content for c in fetched.comments] == ["root"]
    assert [r.content for r in fetched.comments[0].replies] == ["reply"]


@pytest.mark.asyncio
async def test_get_missing_post(db):
    with pytest.raises(NotFoundError):
        await post_service.get_post(db, 1)


@pytest.mark.asyncio
async def test_update_replaces_tags_and_images(db):
    created = await post_service.create_post(
        db, _payload(tags=["A", "B"], image_urls=["https://x.com/old.png"]), OWNER
    )

    updated = await post_service.update_post(
        db,
        created.id,
        PostUpdate(
            title="New title",
            content="New content body",
            category="SPORTS",
            tags=["b", "C"],
            image_urls=["https://x.com/new.png"],
        ),
        OWNER,
    )

    assert sorted(t.name for t in updated.tags) == ["B", "C"]
    assert updated.image_urls == ["https://x.com/new.png"]
    assert updated.title == "New title"
    assert updated.category == BlogCategory.SPORTS
    assert updated.user_id == OWNER
    links = (await db.execute(select(func.count()).select_from(post_tags))).scalar_one()
    assert links == 2
    # tags are never garbage collected
    assert (await db.execute(select(func.count(Tag.id)))).scalar_one() == 3


@pytest.mark.asyncio
async def test_update_checks_existence_before_ownership(db):
    created = await post_service.create_post(db, _payload(), OWNER)

    with pytest.raises(NotFoundError):
        await post_service.update_post(db, created.id + 100, _payload(), OTHER)
    with pytest.raises(ForbiddenError):
        await post_service.update_post(db, created.id, _payload(title="Hijacked"), OTHER)

    fetched = await post_service.get_post(db, created.id)
    assert fetched.title == "A post title"


@pytest.mark.asyncio
async def test_delete_checks_existence_before_ownership(db):
    created = await post_service.create_post(db, _payload(), OWNER)

    with pytest.raises(NotFoundError):
        await post_service.delete_post(db, created.id + 100, OTHER)
    with pytest.raises(ForbiddenError):
        await post_service.delete_post(db, created.id, OTHER)
    assert (await db.execute(select(func.count(Post.id)))).scalar_one() == 1


@pytest.mark.asyncio
async def test_delete_cascades_comments_likes_and_tag_links(db):
    created = await post_service.create_post(db, _payload(tags=["keep"]), OWNER)
    root = await create_comment(db, CommentCreate(content="root", post_id=created.id), OTHER)
    reply = await create_comment(
        db, CommentCreate(content="reply", post_id=created.id, parent_comment_id=root.id), OWNER
    )
    await toggle_like(db, OTHER, post_id=created.id)
    await toggle_like(db, OWNER, comment_id=reply.id)

    await post_service.delete_post(db, created.id, OWNER)

    assert (await db.execute(select(func.count(Post.id)))).scalar_one() == 0
    assert (await db.execute(select(func.count(Comment.id)))).scalar_one() == 0
    assert (await db.execute(select(func.count(Like.id)))).scalar_one() == 0
    assert (await db.execute(select(func.count()).select_from(post_tags))).scalar_one() == 0
    assert (await db.execute(select(func.count(Tag.id)))).scalar_one() == 1


@pytest.mark.asyncio
async def test_get_images(db):
    created = await post_service.create_post(db, _payload(image_urls=["https://x.com/a.png"]), OWNER)

    assert await post_service.get_post_images(db, created.id) == ["https://x.com/a.png"]
    with pytest.raises(NotFoundError):
        await post_service.get_post_images(db, created.id + 1)


async def _seed(db, count, category="TRAVEL", title="Trip"):
    base = datetime(2024, 1, 1)
    posts = []
    for i in range(count):
        post = Post(
            user_id=OWNER,
            title=f"{title} {i + 1}",
            content="Content for listing",
            category=category,
            created_at=base + timedelta(minutes=i),
        )
        db.add(post)
        posts.append(post)
    await db.commit()
    return posts


@pytest.mark.asyncio
async def test_category_page_two(db):
    posts = await _seed(db, 25)
    await _seed(db, 3, category="FOOD", title="Meal")

    page = await post_service.list_posts_by_category(db, "travel", page_number=2, page_size=10)

    newest_first = list(reversed(posts))
    assert page.total_count == 25
    assert [p.id for p in page.items] == [p.id for p in newest_first[10:20]]
    assert page.page_number == 2
    assert page.page_size == 10


@pytest.mark.asyncio
async def test_category_rejects_unknown_category_and_bad_page(db):
    with pytest.raises(InvalidArgumentError):
        await post_service.list_posts_by_category(db, "gardening", 1, 10)
    with pytest.raises(InvalidArgumentError):
        await post_service.list_posts_by_category(db, "TRAVEL", 0, 10)


@pytest.mark.asyncio
async def test_list_filters_by_title_case_insensitively(db):
    await _seed(db, 2, title="Trip")
    await _seed(db, 1, title="Recipe")

    posts = await post_service.list_posts(db, filter_on="Title", filter_query="RECIPE")

    assert [p.title for p in posts] == ["Recipe 1"]


@pytest.mark.asyncio
async def test_list_sorts_by_creation(db):
    seeded = await _seed(db, 3)

    desc = await post_service.list_posts(db, sort_by="createdAt", is_ascending=False)
    asc = await post_service.list_posts(db, sort_by="created_at", is_ascending=True)

    assert [p.id for p in desc] == [p.id for p in reversed(seeded)]
    assert [p.id for p in asc] == [p.id for p in seeded]


@pytest.mark.asyncio
async def test_list_ignores_unknown_fields(db):
    seeded = await _seed(db, 3)

    posts = await post_service.list_posts(db, filter_on="author", filter_query="x", sort_by="popularity")

    assert [p.id for p in posts] == [p.id for p in seeded]


@pytest.mark.asyncio
async def test_list_paginates_when_page_size_given(db):
    seeded = await _seed(db, 5)

    posts = await post_service.list_posts(db, page_number=2, page_size=2)

    assert [p.id for p in posts] == [p.id for p in seeded[2:4]]
