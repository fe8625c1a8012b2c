from typing import Optional
from datetime import datetime
from pydantic import ConfigDict
import uuid

from src.schemas.analytics_schemas import CamelModel


class PublicBrandResponse(CamelModel):
    """Brand details shown alongside a public article"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    tagline: Optional[str] = None
    description: str
    logo_url: Optional[str] = None
    primary_color: str
    accent_color: str
    website_url: str


class PublicArticleResponse(CamelModel):
    """Published article as served to readers"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    subtitle: Optional[str] = None
    content: str
    excerpt: str
    slug: str
    language: str
    category: str
    author_name: str
    featured_image: Optional[str] = None
    published_at: Optional[datetime] = None
    brand: PublicBrandResponse
