"""
Blog post rendering.

Post content is plain text written by admins. Rendering escapes it
first, so the only HTML in the output is what we add here.
"""

import html
import re

from portal.attachments.resolver import to_direct_drive_url
from portal.models.blog import BlogPost

_BOLD = re.compile(r"\*\*(.*?)\*\*")


def render_post_content(text: str) -> str:
    """
    Plain text to HTML.

    **bold** becomes <strong>, blank lines separate paragraphs and a
    single newline becomes <br />.
    """
    safe = html.escape(text or "", quote=False)
    safe = _BOLD.sub(r"<strong>\1</strong>", safe)
    paragraphs = safe.replace("\r\n", "\n").split("\n\n")
    return "".join(f"<p>{p.replace(chr(10), '<br />')}</p>" for p in paragraphs)


def post_image_src(post: BlogPost) -> str:
    """Header image URL, with Drive share links made directly viewable."""
    return to_direct_drive_url(post.image_url) if post.image_url else ""
