"""Tests for the blog store, rendering and role-gated editing."""

import pytest
from pydantic import ValidationError

from portal.blog import BlogManager, post_image_src, render_post_content
from portal.models.audit import AuditEventType
from portal.models.blog import BlogPost, PostStatus
from portal.models.records import UserRole
from portal.services.storage import InMemorySnapshotStorage, NotFoundError
from portal.store import BlogStore


def _post(post_id, publish_date, status=PostStatus.PUBLISHED, **kwargs):
    return BlogPost(id=post_id, title=f"Post {post_id}", publish_date=publish_date, status=status, **kwargs)


class TestRender:
    def test_html_is_escaped(self):
        assert render_post_content("<script>alert(1)</script>") == (
            "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>"
        )

    def test_bold(self):
        assert render_post_content("a **big** step") == "<p>a <strong>big</strong> step</p>"

    def test_paragraphs_and_line_breaks(self):
        assert render_post_content("one\ntwo\n\nthree") == "<p>one<br />two</p><p>three</p>"

    def test_empty(self):
        assert render_post_content("") == "<p></p>"

    def test_image_src(self):
        post = BlogPost(title="t", image_url="https://drive.google.com/file/d/xyz/view")
        assert post_image_src(post) == "https://drive.google.com/uc?export=view&id=xyz"
        assert post_image_src(BlogPost(title="t")) == ""


class TestBlogPost:
    def test_title_required(self):
        with pytest.raises(ValidationError):
            BlogPost(title="   ")

    def test_tags_deduplicated(self):
        assert BlogPost(title="t", tags=["a", " a", "", "b"]).tags == ["a", "b"]


class TestBlogStore:
    def test_first_run_loads_seed(self, blog_store):
        assert [p.id for p in blog_store.list_posts()] == ["post-welcome"]

    def test_unreadable_snapshot_falls_back(self, audit_logger):
        store = BlogStore(InMemorySnapshotStorage("[{]", name="blog_posts"), audit_logger)
        store.load()
        assert store.get("post-welcome") is not None
        events = [e.event_type for e in audit_logger.recent_events()]
        assert AuditEventType.SNAPSHOT_LOAD_FAILED in events

    def test_published_newest_first(self):
        store = BlogStore(InMemorySnapshotStorage(), seed=lambda: [
            _post("a", "2025-01-01"),
            _post("b", "2025-03-01", status=PostStatus.DRAFT),
            _post("c", "2025-02-01"),
        ])
        store.load()
        assert [p.id for p in store.published_posts()] == ["c", "a"]
        assert len(store.list_posts()) == 3

    def test_new_post_goes_on_top(self, blog_store):
        assert blog_store.save_post(_post("new", "2025-09-10")) is True
        assert blog_store.list_posts()[0].id == "new"

    def test_save_existing_replaces(self, blog_store):
        post = blog_store.get("post-welcome")
        post.title = "Renamed"
        assert blog_store.save_post(post) is False
        assert [p.title for p in blog_store.list_posts()] == ["Renamed"]

    def test_round_trip(self):
        storage = InMemorySnapshotStorage()
        store = BlogStore(storage)
        store.load()
        store.save_post(_post("new", "2025-09-10", tags=["news"]))

        reloaded = BlogStore(InMemorySnapshotStorage(storage.read()))
        reloaded.load()
        assert reloaded.list_posts() == store.list_posts()

    def test_delete_missing_raises(self, blog_store):
        with pytest.raises(NotFoundError):
            blog_store.delete_post("post-nowhere")


class TestBlogManager:
    """Tests for admin editing and investor denial."""

    def test_admin_creates_post(self, blog_store, audit_logger):
        manager = BlogManager(blog_store, UserRole.ADMIN, audit_logger)
        result = manager.save({"id": "", "title": "Wiring starts", "status": "Draft"})

        assert result.ok
        assert result.notice == "Post created."
        created = manager.posts()[0]
        assert created.title == "Wiring starts"
        assert created.id.startswith("post-")
        assert created not in blog_store.published_posts()
        events = [e.event_type for e in audit_logger.recent_events()]
        assert AuditEventType.BLOG_POST_SAVED in events

    def test_admin_updates_post(self, blog_store):
        manager = BlogManager(blog_store, UserRole.ADMIN)
        values = blog_store.get("post-welcome").model_dump()
        values["title"] = "Breaking Ground"

        assert manager.save(values).notice == "Post updated."
        assert blog_store.get("post-welcome").title == "Breaking Ground"

    def test_invalid_post(self, blog_store):
        result = BlogManager(blog_store, UserRole.ADMIN).save({"title": ""})
        assert not result.ok
        assert result.notice.startswith("Invalid post:")
        assert len(blog_store.list_posts()) == 1

    def test_delete(self, blog_store):
        manager = BlogManager(blog_store, UserRole.ADMIN)
        assert manager.delete("post-welcome").notice == "Post deleted."
        assert manager.posts() == []
        assert manager.delete("post-welcome").notice == "That post no longer exists."

    def test_investor_cannot_edit(self, blog_store, audit_logger):
        manager = BlogManager(blog_store, UserRole.INVESTOR, audit_logger)

        saved = manager.save({"title": "Sneaky"})
        deleted = manager.delete("post-welcome")

        assert saved.notice == "Only admins can edit blog posts. You are viewing as investor."
        assert deleted.notice == "Only admins can delete blog posts. You are viewing as investor."
        assert [p.id for p in blog_store.list_posts()] == ["post-welcome"]
        denials = [
            e for e in audit_logger.recent_events()
            if e.event_type == AuditEventType.PERMISSION_DENIED
        ]
        assert len(denials) == 2
