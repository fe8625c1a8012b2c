"""
Test configuration and fixtures for pytest.
"""
import os
import tempfile
import uuid
from datetime import datetime, timezone
from typing import Optional

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="newsdesk-test-logs-"))
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["GEOIP_DB_PATH"] = os.path.join(tempfile.gettempdir(), "missing-GeoLite2-City.mmdb")
os.environ["TRUST_PROXY_HEADERS"] = "True"

import pytest
from httpx import AsyncClient, ASGITransport

from src.database import Base, build_engine, build_session_factory, get_db
from src.models.analytics_models import PageView
from src.models.content_models import Article, NewsBrand, ARTICLE_STATUS_PUBLISHED
from src.services.geoip_service import GeoIPService

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class Seeder:
    """Inserts brands, articles and page views for a test."""

    def __init__(self, session):
        self.session = session

    async def brand(self, name: str = "Daily Planet", is_active: bool = True) -> NewsBrand:
        brand = NewsBrand(name=name, is_active=is_active)
        self.session.add(brand)
        await self.session.commit()
        return brand

    async def article(
        self,
        brand: NewsBrand,
        title: str = "Test Article",
        slug: Optional[str] = None,
        status: str = ARTICLE_STATUS_PUBLISHED,
        published_at: Optional[datetime] = None,
    ) -> Article:
        article = Article(
            title=title,
            slug=slug or f"article-{uuid.uuid4().hex[:8]}",
            status=status,
            brand_id=brand.id,
            content="Body text",
            excerpt="Excerpt",
            author_name="Staff Writer",
            published_at=published_at or datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
        )
        self.session.add(article)
        await self.session.commit()
        return article

    async def view(
        self,
        article: Article,
        timestamp: Optional[datetime] = None,
        device: Optional[str] = "desktop",
        country: Optional[str] = "US",
        **fields,
    ) -> PageView:
        page_view = PageView(
            article_id=article.id,
            timestamp=timestamp or datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
            ip_address=fields.pop("ip_address", "a" * 64),
            device=device,
            country=country,
            **fields,
        )
        self.session.add(page_view)
        await self.session.commit()
        return page_view


@pytest.fixture
async def engine():
    """In-memory database with the full schema."""
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture
async def client(session_factory):
    """Create async test client bound to the test database."""
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory
    app.state.geoip = GeoIPService()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
