from typing import Optional, List
import uuid
from datetime import datetime

# SQLAlchemy imports
from sqlalchemy import String, Boolean, ForeignKey, DateTime, Text, Uuid, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

# Import the Base class from database module
from src.database import Base
from src.utils.custom_utils import utcnow

# Constants for repeated values
BRANDS_ID_FK = "tbl_news_brands.id"
ARTICLE_STATUS_DRAFT = "draft"
ARTICLE_STATUS_PUBLISHED = "published"
ARTICLE_STATUS_ARCHIVED = "archived"


class NewsBrand(Base):
    """
    SQLAlchemy model representing a fictional news brand.
    Brands are managed elsewhere; analytics only reads them.
    """
    __tablename__ = "tbl_news_brands"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tagline: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="")
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_color: Mapped[str] = mapped_column(String(7), default="#1a1a1a")
    accent_color: Mapped[str] = mapped_column(String(7), default="#0066cc")
    language: Mapped[str] = mapped_column(String(10), default="en")
    website_url: Mapped[str] = mapped_column(String(500), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    articles: Mapped[List["Article"]] = relationship("Article", back_populates="brand")


class Article(Base):
    """
    SQLAlchemy model representing a generated article.
    Only articles with status "published" are publicly visible and tracked.
    """
    __tablename__ = "tbl_articles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, default="")
    excerpt: Mapped[str] = mapped_column(Text, default="")
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en")
    category: Mapped[str] = mapped_column(String(100), default="general")
    author_name: Mapped[str] = mapped_column(String(255), default="")
    featured_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ARTICLE_STATUS_DRAFT)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    brand_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey(BRANDS_ID_FK, ondelete="RESTRICT"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    brand: Mapped["NewsBrand"] = relationship("NewsBrand", back_populates="articles")

    __table_args__ = (
        Index("idx_article_status", "status"),
        Index("idx_article_published_at", "published_at"),
    )
