"""Blog post model."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.models.records import new_record_id


class PostStatus(str, Enum):
    PUBLISHED = "Published"
    DRAFT = "Draft"


class BlogPost(BaseModel):
    """
    A blog post shown on the public site.

    content is plain text. The only markup recognised is **bold**;
    blank lines separate paragraphs.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=lambda: new_record_id("post"))
    title: str = Field(..., min_length=1, max_length=200)
    author: str = ""
    publish_date: str = Field(default="", description="YYYY-MM-DD")
    status: PostStatus = PostStatus.DRAFT
    excerpt: str = ""
    content: str = ""
    image_url: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED
