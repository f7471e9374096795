"""
Blog Manager

Role-gated editing of blog posts for the portal. Reading published
posts needs no role; the public blog page uses the store directly.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from portal.audit import AuditLogger
from portal.models.audit import AuditEventBuilder
from portal.models.blog import BlogPost
from portal.models.records import UserRole
from portal.services.storage.interface import NotFoundError
from portal.store.blog_store import BlogStore
from portal.workspace.roles import ActionResult, require_admin

logger = structlog.get_logger(__name__)


class BlogManager:
    def __init__(
        self,
        store: BlogStore,
        role: UserRole,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.store = store
        self.role = UserRole(role)
        self._audit_logger = audit_logger

    def posts(self) -> list[BlogPost]:
        """Every post, drafts included, in stored order."""
        return self.store.list_posts(include_drafts=True)

    def save(self, values: dict) -> ActionResult:
        """
        Create or update a post from form values.

        A values dict without an id creates a new post.
        """
        denied = require_admin(self.role, "edit blog posts", self._audit_logger)
        if denied:
            return denied

        if not values.get("id"):
            values = {k: v for k, v in values.items() if k != "id"}
        try:
            post = BlogPost.model_validate(values)
        except ValidationError as e:
            return ActionResult.failure(f"Invalid post: {e.errors()[0]['msg']}")

        created = self.store.save_post(post)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.blog_post_saved(post.id, post.title))
        logger.info("blog_post_saved", post_id=post.id, created=created)
        return ActionResult.success("Post created." if created else "Post updated.")

    def delete(self, post_id: str) -> ActionResult:
        denied = require_admin(self.role, "delete blog posts", self._audit_logger)
        if denied:
            return denied
        try:
            self.store.delete_post(post_id)
        except NotFoundError:
            return ActionResult.failure("That post no longer exists.")
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.blog_post_deleted(post_id))
        return ActionResult.success("Post deleted.")
