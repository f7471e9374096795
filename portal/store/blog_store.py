"""
Blog Store

Blog posts live in their own snapshot, independent of project data,
with the same load/persist policy as the record store: unreadable
snapshots fall back to seed posts, failed writes are logged and
swallowed.
"""

from typing import Callable, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from portal.audit import AuditLogger
from portal.models.audit import AuditEventBuilder
from portal.models.blog import BlogPost
from portal.services.storage.interface import (
    NotFoundError,
    SnapshotStorageInterface,
    StorageError,
)
from portal.store.seed import seed_blog_posts


_POSTS = TypeAdapter(list[BlogPost])


class BlogStore:
    """Ordered list of blog posts, mirrored to a snapshot."""

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        seed: Callable[[], list[BlogPost]] = seed_blog_posts,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._seed = seed
        self._posts: list[BlogPost] = []
        self._logger = structlog.get_logger(__name__)

    def load(self) -> None:
        """Read the snapshot, or fall back to seed posts. Never raises."""
        try:
            raw = self._storage.read()
            if raw is None:
                self._posts = self._seed()
                return
            self._posts = _POSTS.validate_json(raw)
        except (StorageError, ValidationError) as e:
            self._logger.warning("blog_snapshot_unreadable", error=str(e))
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.snapshot_load_failed(self._storage.name, str(e)[:200])
                )
            self._posts = self._seed()

    def persist(self) -> bool:
        try:
            self._storage.write(_POSTS.dump_json(self._posts, indent=2).decode("utf-8"))
            return True
        except Exception as e:
            self._logger.error("blog_snapshot_write_failed", error=str(e))
            if self._audit_logger:
                self._audit_logger.log_snapshot_write_failed(self._storage.name, e)
            return False

    def list_posts(self, include_drafts: bool = True) -> list[BlogPost]:
        return [
            post.model_copy(deep=True)
            for post in self._posts
            if include_drafts or post.is_published
        ]

    def published_posts(self) -> list[BlogPost]:
        """Published posts, newest publish date first."""
        posts = self.list_posts(include_drafts=False)
        posts.sort(key=lambda p: p.publish_date, reverse=True)
        return posts

    def get(self, post_id: str) -> Optional[BlogPost]:
        for post in self._posts:
            if post.id == post_id:
                return post.model_copy(deep=True)
        return None

    def save_post(self, post: BlogPost) -> bool:
        """
        Insert a new post (at the top) or replace the one with the same id.

        Returns True if the post was new.
        """
        stored = post.model_copy(deep=True)
        for index, existing in enumerate(self._posts):
            if existing.id == post.id:
                self._posts[index] = stored
                self.persist()
                return False
        self._posts.insert(0, stored)
        self.persist()
        return True

    def delete_post(self, post_id: str) -> None:
        """
        Raises:
            NotFoundError: If no post has that id
        """
        for index, existing in enumerate(self._posts):
            if existing.id == post_id:
                del self._posts[index]
                self.persist()
                return
        raise NotFoundError(f"Blog post not found: {post_id}")
