"""Blog rendering and management."""

from portal.blog.manager import BlogManager
from portal.blog.render import post_image_src, render_post_content

__all__ = ["BlogManager", "post_image_src", "render_post_content"]
