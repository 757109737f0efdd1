"""News article models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Article(BaseModel):
    """One cleaned headline from the content provider."""
    title: str
    description: str
    url: str = ""
    source: str = ""
    published_at: str = ""
    full_content: str = ""


class DisplayArticle(BaseModel):
    """Article as presented to the user (possibly simplified)."""
    title: str
    description: str
    content: str
    original: Optional[Article] = None


class NewsResponse(BaseModel):
    articles: List[Article] = Field(default_factory=list)
