"""
Tests for page view recording, directly and through the public article route.
"""
import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy import select, func

from src.models.analytics_models import PageView, UNKNOWN_IP_SENTINEL
from src.models.content_models import ARTICLE_STATUS_DRAFT, ARTICLE_STATUS_ARCHIVED
from src.services.analytics import PageViewContext, ViewTracker
from src.services.geoip_service import GeoIPResult

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def make_geoip(country="KE", city="Nairobi"):
    geoip = MagicMock()
    geoip.lookup.return_value = GeoIPResult(country=country, city=city)
    return geoip


async def count_views(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(PageView.id)))).scalar_one()


async def all_views(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(PageView))).scalars().all()


async def test_records_enriched_view(session_factory, seed):
    brand = await seed.brand()
    article = await seed.article(brand, slug="budget-2024")
    tracker = ViewTracker(session_factory, make_geoip())

    recorded = await tracker.record_view(PageViewContext(
        slug="budget-2024",
        path="/api/v1/public/daily-planet/article/2024/01/budget-2024",
        raw_ip="203.0.113.7",
        user_agent=CHROME_WINDOWS,
        referrer="https://search.example/",
    ))

    assert recorded is True
    views = await all_views(session_factory)
    assert len(views) == 1
    view = views[0]
    assert view.article_id == article.id
    assert view.ip_address == hashlib.sha256(b"203.0.113.7").hexdigest()
    assert view.country == "KE"
    assert view.city == "Nairobi"
    assert view.device == "desktop"
    assert view.browser.startswith("Chrome")
    assert view.referrer == "https://search.example/"


async def test_unpublished_articles_are_not_tracked(session_factory, seed):
    brand = await seed.brand()
    await seed.article(brand, slug="draft-story", status=ARTICLE_STATUS_DRAFT)
    await seed.article(brand, slug="old-story", status=ARTICLE_STATUS_ARCHIVED)
    tracker = ViewTracker(session_factory, make_geoip())

    for slug in ["draft-story", "old-story", "no-such-story"]:
        assert await tracker.record_view(PageViewContext(slug=slug, path=f"/{slug}")) is False

    assert await count_views(session_factory) == 0


async def test_missing_slug_is_ignored(session_factory):
    tracker = ViewTracker(session_factory, make_geoip())

    assert await tracker.record_view(PageViewContext(slug=None, path="/")) is False
    assert await count_views(session_factory) == 0


async def test_geoip_failure_still_records(session_factory, seed):
    brand = await seed.brand()
    await seed.article(brand, slug="budget-2024")
    geoip = MagicMock()
    geoip.lookup.side_effect = RuntimeError("reader exploded")
    tracker = ViewTracker(session_factory, geoip)

    recorded = await tracker.record_view(PageViewContext(slug="budget-2024", path="/x", raw_ip="203.0.113.7"))

    assert recorded is True
    view = (await all_views(session_factory))[0]
    assert view.country is None
    assert view.city is None
    assert view.ip_address == hashlib.sha256(b"203.0.113.7").hexdigest()


async def test_missing_address_stored_as_unknown(session_factory, seed):
    brand = await seed.brand()
    await seed.article(brand, slug="budget-2024")
    tracker = ViewTracker(session_factory, make_geoip(country=None, city=None))

    await tracker.record_view(PageViewContext(slug="budget-2024", path="/x", raw_ip=None))

    view = (await all_views(session_factory))[0]
    assert view.ip_address == UNKNOWN_IP_SENTINEL
    assert view.browser is None
    assert view.device is None


async def test_anonymizer_failure_stores_unknown_address(session_factory, seed):
    brand = await seed.brand()
    await seed.article(brand, slug="budget-2024")
    tracker = ViewTracker(session_factory, make_geoip())

    with patch("src.services.analytics.view_tracker.anonymize_ip", side_effect=RuntimeError("hash failed")):
        recorded = await tracker.record_view(PageViewContext(
            slug="budget-2024", path="/x", raw_ip="203.0.113.7", user_agent=CHROME_WINDOWS,
        ))

    assert recorded is True
    view = (await all_views(session_factory))[0]
    assert view.ip_address == UNKNOWN_IP_SENTINEL
    assert view.country == "KE"
    assert view.device == "desktop"


async def test_user_agent_failure_still_records(session_factory, seed):
    brand = await seed.brand()
    await seed.article(brand, slug="budget-2024")
    tracker = ViewTracker(session_factory, make_geoip())

    with patch("src.services.analytics.view_tracker.parse_user_agent", side_effect=RuntimeError("bad agent")):
        recorded = await tracker.record_view(PageViewContext(
            slug="budget-2024", path="/x", raw_ip="203.0.113.7", user_agent=CHROME_WINDOWS,
        ))

    assert recorded is True
    view = (await all_views(session_factory))[0]
    assert view.browser is None
    assert view.os is None
    assert view.device is None
    assert view.country == "KE"
    assert view.ip_address == hashlib.sha256(b"203.0.113.7").hexdigest()


async def test_storage_failure_is_swallowed_and_logged():
    failing_factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    tracker = ViewTracker(failing_factory, make_geoip())

    with patch("src.services.analytics.view_tracker.error_logger") as mock_error_logger:
        recorded = await tracker.record_view(PageViewContext(slug="budget-2024", path="/x", raw_ip="203.0.113.7"))

    assert recorded is False
    mock_error_logger.log_tracking_error.assert_called_once()
    error, slug, path = mock_error_logger.log_tracking_error.call_args.args
    assert isinstance(error, RuntimeError)
    assert (slug, path) == ("budget-2024", "/x")


async def test_public_route_records_one_view(client, session_factory, seed):
    brand = await seed.brand("Daily Planet")
    await seed.article(brand, title="Budget Day", slug="budget-day")

    response = await client.get(
        "/api/v1/public/daily-planet/article/2024/01/budget-day",
        headers={
            "X-Forwarded-For": "198.51.100.23, 10.0.0.1",
            "User-Agent": CHROME_WINDOWS,
            "Referer": "https://social.example/post",
        },
    )

    assert response.status_code == 200
    assert response.json()["body"]["title"] == "Budget Day"

    views = await all_views(session_factory)
    assert len(views) == 1
    assert views[0].ip_address == hashlib.sha256(b"198.51.100.23").hexdigest()
    assert views[0].referrer == "https://social.example/post"


async def test_public_route_draft_returns_404_without_view(client, session_factory, seed):
    brand = await seed.brand("Daily Planet")
    await seed.article(brand, slug="draft-story", status=ARTICLE_STATUS_DRAFT)

    response = await client.get("/api/v1/public/daily-planet/article/2024/01/draft-story")

    assert response.status_code == 404
    assert await count_views(session_factory) == 0


async def test_public_route_checks_publication_month(client, session_factory, seed):
    brand = await seed.brand("Daily Planet")
    await seed.article(brand, slug="budget-day")

    response = await client.get("/api/v1/public/daily-planet/article/2024/02/budget-day")

    assert response.status_code == 404


async def test_public_route_unknown_brand(client, seed):
    brand = await seed.brand("Daily Planet")
    await seed.article(brand, slug="budget-day")

    response = await client.get("/api/v1/public/daily-bugle/article/2024/01/budget-day")

    assert response.status_code == 404


async def test_public_route_unaffected_by_tracking_failure(client, session_factory, seed):
    brand = await seed.brand("Daily Planet")
    await seed.article(brand, title="Budget Day", slug="budget-day")
    lookup = AsyncMock(side_effect=RuntimeError("database unavailable"))

    with patch.object(ViewTracker, "_find_published_article", lookup), \
            patch("src.services.analytics.view_tracker.error_logger") as mock_error_logger:
        response = await client.get("/api/v1/public/daily-planet/article/2024/01/budget-day")

    assert response.status_code == 200
    assert response.json()["body"]["title"] == "Budget Day"
    lookup.assert_awaited_once()
    mock_error_logger.log_tracking_error.assert_called_once()
    assert await count_views(session_factory) == 0
