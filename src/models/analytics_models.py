from typing import Optional
import uuid
from datetime import datetime

# SQLAlchemy imports
from sqlalchemy import String, ForeignKey, DateTime, Uuid, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column

# Import the Base class from database module
from src.database import Base
from src.models.content_models import Article
from src.utils.custom_utils import utcnow

# Constants
ARTICLES_ID_FK = "tbl_articles.id"
UNKNOWN_IP_SENTINEL = "unknown"
REFERRER_MAX_LENGTH = 2048


class PageView(Base):
    """
    SQLAlchemy model representing one observed view of a published article.

    Rows are append-only. ip_address holds a one-way hash, never the raw address.
    """
    __tablename__ = "tbl_page_views"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    article_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey(ARTICLES_ID_FK, ondelete="RESTRICT"), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default=UNKNOWN_IP_SENTINEL)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    browser: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    os: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    device: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(String(REFERRER_MAX_LENGTH), nullable=True)

    # Relationship
    article: Mapped[Article] = relationship(Article)

    __table_args__ = (
        Index("idx_pageview_timestamp", "timestamp"),
        Index("idx_pageview_article_id", "article_id"),
        Index("idx_pageview_country", "country"),
    )
