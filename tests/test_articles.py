from types import SimpleNamespace

import pytest

from webporto.article_store import ArticleRepository
from webporto.articles import (
    ArticleService,
    CreateArticleRequest,
    ImageData,
    UpdateArticleRequest,
    VideoData,
    read_time,
)
from webporto.categories import Category, CategoryRepository
from webporto.store import RecordNotFound
from webporto.tags import Tag, TagRepository
from webporto.users import User, UserRepository, UserService


def _build(with_admin=True):
    users = UserRepository()
    if with_admin:
        users.create(User(username="admin", email="admin@example.com", role="admin"))
    categories = CategoryRepository()
    tags = TagRepository()
    articles = ArticleRepository(categories, tags, users)
    service = ArticleService(articles, categories, tags, UserService(users))
    return SimpleNamespace(users=users, categories=categories, tags=tags, articles=articles, service=service)


@pytest.fixture
def env():
    return _build()


@pytest.mark.parametrize("minutes", [1, 2, 5])
def test_read_time_counts_whole_minutes(minutes):
    assert read_time(" ".join(["word"] * (200 * minutes))) == minutes


def test_read_time_is_at_least_one():
    assert read_time("") == 1
    assert read_time("a few words") == 1


def test_create_derives_slug_from_title(env):
    response = env.service.create_article(CreateArticleRequest(title="Hello World", content="body"))
    assert response.slug == "hello-world"
    assert response.title == "Hello World"


def test_duplicate_slug_gets_suffix(env):
    first = env.service.create_article(CreateArticleRequest(title="Same Title"))
    second = env.service.create_article(CreateArticleRequest(title="Same Title"))
    assert second.slug == first.slug + "-2"


def test_author_defaults_to_admin(env):
    response = env.service.create_article(CreateArticleRequest(title="A"))
    admin = env.users.find_by_email("admin@example.com")
    assert response.author.id == admin.id
    assert response.author.username == "admin"


def test_create_without_users_raises():
    empty = _build(with_admin=False)
    with pytest.raises(RecordNotFound):
        empty.service.create_article(CreateArticleRequest(title="A"))


def test_published_status_sets_publish_date(env):
    published = env.service.create_article(CreateArticleRequest(title="P", status="published"))
    draft = env.service.create_article(CreateArticleRequest(title="D", status="draft"))
    assert published.published_at is not None
    assert draft.published_at is None


def test_category_names_are_created(env):
    response = env.service.create_article(CreateArticleRequest(title="A", category_id_strs=["Go Lang"]))
    assert [c.name for c in response.categories] == ["Go Lang"]
    assert env.categories.find_by_name("Go Lang").id == response.categories[0].id


def test_tag_ids_are_deduplicated(env):
    tag = env.tags.create(Tag(name="Go", slug="go"))
    response = env.service.create_article(
        CreateArticleRequest(title="A", tag_ids=[tag.id], tags=[tag.id], tag_id_strs=[str(tag.id)])
    )
    assert [t.id for t in response.tags] == [tag.id]


def test_images_and_videos_are_stored(env):
    response = env.service.create_article(
        CreateArticleRequest(
            title="A",
            images=[ImageData(url="/a.png", caption="cap")],
            videos=[VideoData(url="/v.mp4")],
        )
    )
    assert [i.url for i in response.images] == ["/a.png"]
    assert response.images[0].caption == "cap"
    assert [v.url for v in response.videos] == ["/v.mp4"]


def test_featured_image_restored_from_metadata(env):
    response = env.service.create_article(
        CreateArticleRequest(title="A", metadata={"featuredImageUrl": "/cover.png"})
    )
    assert response.featured_image_url == "/cover.png"
    assert response.metadata == {"featuredImageUrl": "/cover.png"}


def test_get_by_slug_counts_views(env):
    created = env.service.create_article(CreateArticleRequest(title="Viewed"))
    first = env.service.get_article_by_slug(created.slug)
    second = env.service.get_article_by_slug(created.slug)
    assert second.view_count == first.view_count + 1
    assert env.service.get_article_by_id(created.id).view_count == second.view_count


def test_list_articles_paginates(env):
    for title in ("One", "Two", "Three"):
        env.service.create_article(CreateArticleRequest(title=title))
    page_one = env.service.list_articles(1, 2)
    page_two = env.service.list_articles(2, 2)
    assert len(page_one.data) == 2
    assert page_one.pagination.total_count == 3
    assert page_one.pagination.total_pages == 2
    assert page_one.pagination.has_next is True
    assert page_one.pagination.has_previous is False
    assert len(page_two.data) == 1
    assert page_two.pagination.has_next is False
    assert page_two.pagination.has_previous is True
    titles = {a.title for a in page_one.data} | {a.title for a in page_two.data}
    assert titles == {"One", "Two", "Three"}


def test_list_rejects_zero_size(env):
    with pytest.raises(ValueError):
        env.service.list_articles(1, 0)


def test_articles_by_category_slug(env):
    news = env.categories.create(Category(name="News", slug="news"))
    env.service.create_article(CreateArticleRequest(title="In", categories=[news.id]))
    env.service.create_article(CreateArticleRequest(title="Out"))
    result = env.service.get_articles_by_category_slug("news", 1, 10)
    assert [a.title for a in result.data] == ["In"]
    assert result.pagination.total_count == 1


def test_unknown_category_slug_raises(env):
    with pytest.raises(RecordNotFound):
        env.service.get_articles_by_category_slug("missing", 1, 10)


def test_update_title_keeps_slug_and_explicit_slug_changes_it(env):
    created = env.service.create_article(CreateArticleRequest(title="Old"))
    renamed = env.service.update_article(created.id, UpdateArticleRequest(title="New"))
    assert renamed.title == "New"
    assert renamed.slug == created.slug
    reslugged = env.service.update_article(created.id, UpdateArticleRequest(slug="custom"))
    assert reslugged.slug == "custom"


def test_update_to_published_sets_date(env):
    created = env.service.create_article(CreateArticleRequest(title="A", status="draft"))
    updated = env.service.update_article(created.id, UpdateArticleRequest(status="published"))
    assert updated.status == "published"
    assert updated.published_at is not None


def test_update_temporary_id_creates_article(env):
    response = env.service.update_article("temp-abc", UpdateArticleRequest(title="Fresh"))
    assert response.title == "Fresh"
    assert not response.id.startswith("temp-")
    assert env.service.get_article_by_id(response.id).title == "Fresh"


def test_update_metadata_resets_it(env):
    created = env.service.create_article(CreateArticleRequest(title="A", metadata={"k": "v"}))
    updated = env.service.update_article(created.id, UpdateArticleRequest(metadata={"x": "y"}))
    assert updated.metadata == {}


def test_update_with_empty_category_strings_clears_categories(env):
    created = env.service.create_article(CreateArticleRequest(title="A", category_id_strs=["Misc"]))
    assert len(created.categories) == 1
    updated = env.service.update_article(created.id, UpdateArticleRequest(category_id_strs=[""]))
    assert updated.categories == []


def test_update_missing_article_raises(env):
    with pytest.raises(RecordNotFound):
        env.service.update_article("no-such-id", UpdateArticleRequest(title="X"))


def test_delete_article(env):
    created = env.service.create_article(CreateArticleRequest(title="Gone"))
    env.service.delete_article(created.id)
    with pytest.raises(RecordNotFound):
        env.service.get_article_by_id(created.id)


def test_add_image_appends(env):
    created = env.service.create_article(CreateArticleRequest(title="A", images=[ImageData(url="/1.png")]))
    added = env.service.add_article_image(created.id, ImageData(url="/2.png", alt_text="alt"))
    assert added.url == "/2.png"
    assert added.alt_text == "alt"
    stored = env.service.get_article_by_id(created.id)
    assert [i.url for i in stored.images] == ["/1.png", "/2.png"]
    assert added.id in {i.id for i in stored.images}


def test_add_video_appends(env):
    created = env.service.create_article(CreateArticleRequest(title="A"))
    added = env.service.add_article_video(created.id, VideoData(url="/v.mp4", caption="clip"))
    stored = env.service.get_article_by_id(created.id)
    assert [v.url for v in stored.videos] == ["/v.mp4"]
    assert added.caption == "clip"


def test_add_image_to_missing_article_raises(env):
    with pytest.raises(RecordNotFound):
        env.service.add_article_image("missing", ImageData(url="/x.png"))