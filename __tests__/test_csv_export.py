"""
Tests for the streamed CSV export.
"""
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.responses import StreamingResponse

from src.schemas.analytics_schemas import AnalyticsFilter
from src.services.analytics import AnalyticsService
from src.services.analytics.csv_export import (
    CSV_HEADER,
    EXPORT_PAGE_SIZE,
    format_csv_row,
    page_view_to_csv_values,
)

HEADER_LINE = "Timestamp,Article,Brand,Country,City,Browser,OS,Device,Referrer\n"


def export_row(title="Story", **fields):
    values = {
        "timestamp": datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
        "article_title": title,
        "brand_name": "Daily Planet",
        "country": "KE",
        "city": "Nairobi",
        "browser": "Chrome 120.0.0",
        "os": "Windows 10",
        "device": "desktop",
        "referrer": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def page(size):
    return [export_row(title=f"Story {index}") for index in range(size)]


async def read_body(response: StreamingResponse) -> str:
    chunks = []
    async for chunk in response.body_iterator:
        chunks.append(chunk if isinstance(chunk, str) else chunk.decode("utf-8"))
    return "".join(chunks)


def test_header_is_nine_columns():
    assert CSV_HEADER == HEADER_LINE


def test_comma_values_are_quoted():
    assert format_csv_row(["Article with, comma"]) == '"Article with, comma"\n'


def test_quotes_are_doubled():
    assert format_csv_row(['Say "quotes" here']) == '"Say ""quotes"" here"\n'


def test_newlines_are_quoted():
    assert format_csv_row(["line one\nline two"]) == '"line one\nline two"\n'


def test_none_renders_empty():
    assert format_csv_row(["a", None, "c"]) == "a,,c\n"


def test_row_values_use_iso_timestamp():
    values = page_view_to_csv_values(export_row(referrer="https://example.com/"))

    assert values[0] == "2024-01-01T10:00:00.000Z"
    assert values[1:] == [
        "Story", "Daily Planet", "KE", "Nairobi", "Chrome 120.0.0",
        "Windows 10", "desktop", "https://example.com/",
    ]


async def test_stream_pages_until_short_page():
    service = AnalyticsService(AsyncMock())
    service._fetch_export_page = AsyncMock(side_effect=[
        page(EXPORT_PAGE_SIZE), page(EXPORT_PAGE_SIZE), page(5),
    ])
    filters = AnalyticsFilter()

    response = await service.stream_analytics_csv(filters)
    body = await read_body(response)

    assert [call.args for call in service._fetch_export_page.await_args_list] == [
        (filters, 0, EXPORT_PAGE_SIZE),
        (filters, EXPORT_PAGE_SIZE, EXPORT_PAGE_SIZE),
        (filters, 2 * EXPORT_PAGE_SIZE, EXPORT_PAGE_SIZE),
    ]
    lines = body.splitlines()
    assert lines[0] == HEADER_LINE.strip()
    assert len(lines) == 1 + 2 * EXPORT_PAGE_SIZE + 5


async def test_empty_first_page_emits_header_only():
    service = AnalyticsService(AsyncMock())
    service._fetch_export_page = AsyncMock(return_value=[])

    response = await service.stream_analytics_csv(AnalyticsFilter())
    body = await read_body(response)

    assert body == HEADER_LINE
    assert service._fetch_export_page.await_count == 1


async def test_response_headers():
    service = AnalyticsService(AsyncMock())
    service._fetch_export_page = AsyncMock(return_value=[])

    response = await service.stream_analytics_csv(AnalyticsFilter())

    assert isinstance(response, StreamingResponse)
    assert response.headers["content-type"] == "text/csv; charset=utf-8"
    assert response.headers["content-disposition"] == "attachment; filename=analytics.csv"


async def test_failure_before_streaming_returns_500():
    service = AnalyticsService(AsyncMock())
    service._fetch_export_page = AsyncMock(side_effect=RuntimeError("database unavailable"))

    response = await service.stream_analytics_csv(AnalyticsFilter())

    assert response.status_code == 500
    payload = json.loads(response.body)
    assert payload["response_message"] == "Failed to export analytics data"


async def test_failure_mid_stream_truncates_silently():
    service = AnalyticsService(AsyncMock())
    service._fetch_export_page = AsyncMock(side_effect=[
        page(EXPORT_PAGE_SIZE), RuntimeError("connection lost"),
    ])

    response = await service.stream_analytics_csv(AnalyticsFilter())
    body = await read_body(response)

    lines = body.splitlines()
    assert lines[0] == HEADER_LINE.strip()
    assert len(lines) == 1 + EXPORT_PAGE_SIZE


async def test_export_from_database_never_contains_address(db_session, seed):
    brand = await seed.brand("Daily Planet")
    article = await seed.article(brand, title='Article with, comma and "quotes"')
    hashed = "f" * 64
    await seed.view(
        article,
        timestamp=datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        ip_address=hashed,
        city="Nairobi",
        referrer="https://news.example/",
    )

    response = await AnalyticsService(db_session).stream_analytics_csv(AnalyticsFilter())
    body = await read_body(response)

    assert body.startswith(HEADER_LINE)
    assert '"Article with, comma and ""quotes"""' in body
    assert "2024-03-04T05:06:07.000Z" in body
    assert hashed not in body


@pytest.mark.parametrize("brand_filtered", [True, False])
async def test_header_does_not_depend_on_filters(db_session, seed, brand_filtered):
    brand = await seed.brand()
    filters = AnalyticsFilter(brand_id=brand.id) if brand_filtered else AnalyticsFilter()

    response = await AnalyticsService(db_session).stream_analytics_csv(filters)

    assert await read_body(response) == HEADER_LINE
