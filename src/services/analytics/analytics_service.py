"""
Analytics aggregation service.
Computes dashboard aggregates over recorded page views and streams them as CSV.
"""

import uuid
from typing import Dict, Any, List, AsyncIterator

from fastapi import Response
from fastapi.responses import StreamingResponse
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.models.analytics_models import PageView
from src.models.content_models import Article, NewsBrand, ARTICLE_STATUS_PUBLISHED
from src.schemas.analytics_schemas import AnalyticsFilter
from src.services.analytics.service_base import BaseService
from src.services.analytics.csv_export import (
    CSV_FILENAME,
    CSV_HEADER,
    CSV_MEDIA_TYPE,
    EXPORT_PAGE_SIZE,
    format_csv_rows,
    page_view_to_csv_values,
)
from src.utils.custom_utils import ensure_utc, generate_response

UNKNOWN_LABEL = "unknown"
COMPOSITE_TOP_ARTICLES_LIMIT = 10


class AnalyticsService(BaseService):
    """
    Service for dashboard analytics.

    Read methods never raise: storage failures are logged and the
    corresponding empty aggregate is returned.
    """

    def __init__(self, db_session: AsyncSession):
        """
        Initialize the analytics service.

        Args:
            db_session: Database session
        """
        super().__init__(db_session)

    def get_service_name(self) -> str:
        return "analytics_service"

    def _build_page_view_conditions(self, filters: AnalyticsFilter) -> List:
        """
        Translate a filter into SQL conditions on PageView.

        Brand scoping goes through the article since page views carry no brand.
        """
        conditions = []

        if filters.start_date:
            conditions.append(PageView.timestamp >= filters.start_date)

        if filters.end_date:
            conditions.append(PageView.timestamp <= filters.end_date)

        if filters.article_id:
            conditions.append(PageView.article_id == filters.article_id)

        if filters.brand_id:
            conditions.append(PageView.article.has(Article.brand_id == filters.brand_id))

        return conditions

    @staticmethod
    def _apply_conditions(stmt, conditions: List):
        for condition in conditions:
            stmt = stmt.where(condition)
        return stmt

    async def _count_page_views_by(self, column, filters: AnalyticsFilter) -> Dict[str, int]:
        stmt = self._apply_conditions(
            select(column, func.count(PageView.id)).group_by(column),
            self._build_page_view_conditions(filters),
        )
        result = await self.db_session.execute(stmt)

        counts: Dict[str, int] = {}
        for key, count in result.all():
            label = key or UNKNOWN_LABEL
            counts[label] = counts.get(label, 0) + count
        return counts

    async def get_global_stats(self, filters: AnalyticsFilter) -> Dict[str, int]:
        """
        Get total views, published articles and active brands.

        Args:
            filters: Analytics filter

        Returns:
            Dict with total_views, total_articles and total_brands
        """
        try:
            views_stmt = self._apply_conditions(
                select(func.count(PageView.id)),
                self._build_page_view_conditions(filters),
            )
            total_views = (await self.db_session.execute(views_stmt)).scalar_one()

            articles_stmt = select(func.count(Article.id)).where(Article.status == ARTICLE_STATUS_PUBLISHED)
            if filters.brand_id:
                articles_stmt = articles_stmt.where(Article.brand_id == filters.brand_id)
            if filters.article_id:
                articles_stmt = articles_stmt.where(Article.id == filters.article_id)
            total_articles = (await self.db_session.execute(articles_stmt)).scalar_one()

            brands_stmt = select(func.count(NewsBrand.id)).where(NewsBrand.is_active == True)
            if filters.brand_id:
                brands_stmt = brands_stmt.where(NewsBrand.id == filters.brand_id)
            total_brands = (await self.db_session.execute(brands_stmt)).scalar_one()

            return {
                "total_views": total_views or 0,
                "total_articles": total_articles or 0,
                "total_brands": total_brands or 0,
            }

        except Exception as e:
            self._log_service_error(e, "Error fetching global stats")
            return self._get_fallback_global_stats()

    async def get_views_over_time(self, filters: AnalyticsFilter) -> List[Dict[str, Any]]:
        """
        Get view counts per UTC calendar day.

        Days without views are omitted.

        Args:
            filters: Analytics filter

        Returns:
            List of {date, views} in ascending date order
        """
        try:
            stmt = self._apply_conditions(
                select(PageView.timestamp).order_by(PageView.timestamp.asc()),
                self._build_page_view_conditions(filters),
            )
            result = await self.db_session.execute(stmt)

            buckets: Dict[str, int] = {}
            for timestamp in result.scalars():
                day = ensure_utc(timestamp).date().isoformat()
                buckets[day] = buckets.get(day, 0) + 1

            return [{"date": day, "views": views} for day, views in buckets.items()]

        except Exception as e:
            self._log_service_error(e, "Error fetching views over time")
            return []

    async def get_device_breakdown(self, filters: AnalyticsFilter) -> List[Dict[str, Any]]:
        """
        Get view share per device category.

        Args:
            filters: Analytics filter

        Returns:
            List of {device, count, percentage} sorted by count descending
        """
        try:
            counts = await self._count_page_views_by(PageView.device, filters)
            total = sum(counts.values())

            breakdown = [
                {
                    "device": device,
                    "count": count,
                    "percentage": (count / total) * 100 if total else 0,
                }
                for device, count in counts.items()
            ]
            return sorted(breakdown, key=lambda item: item["count"], reverse=True)

        except Exception as e:
            self._log_service_error(e, "Error fetching device breakdown")
            return []

    async def get_geographic_distribution(self, filters: AnalyticsFilter) -> List[Dict[str, Any]]:
        """
        Get view counts per country, sorted by count descending.
        """
        try:
            counts = await self._count_page_views_by(PageView.country, filters)
            distribution = [{"country": country, "count": count} for country, count in counts.items()]
            return sorted(distribution, key=lambda item: item["count"], reverse=True)

        except Exception as e:
            self._log_service_error(e, "Error fetching geographic distribution")
            return []

    async def get_top_articles(self, filters: AnalyticsFilter) -> List[Dict[str, Any]]:
        """
        Get the most viewed articles.

        Args:
            filters: Analytics filter; limit defaults to TOP_ARTICLES_DEFAULT_LIMIT

        Returns:
            List of {id, title, brand, views, last_viewed} sorted by views descending
        """
        try:
            stmt = self._apply_conditions(
                select(
                    PageView.article_id,
                    PageView.timestamp,
                    Article.title,
                    NewsBrand.name.label("brand_name"),
                )
                .join(Article, PageView.article_id == Article.id)
                .join(NewsBrand, Article.brand_id == NewsBrand.id)
                .order_by(PageView.timestamp.desc()),
                self._build_page_view_conditions(filters),
            )
            result = await self.db_session.execute(stmt)

            article_stats: Dict[uuid.UUID, Dict[str, Any]] = {}
            for row in result:
                timestamp = ensure_utc(row.timestamp)
                stats = article_stats.get(row.article_id)
                if stats is None:
                    stats = {
                        "id": row.article_id,
                        "title": row.title,
                        "brand": row.brand_name,
                        "views": 0,
                        "last_viewed": timestamp,
                    }
                    article_stats[row.article_id] = stats

                stats["views"] += 1
                if timestamp > stats["last_viewed"]:
                    stats["last_viewed"] = timestamp

            ranked = sorted(article_stats.values(), key=lambda item: item["views"], reverse=True)

            offset = filters.offset or 0
            limit = filters.limit or settings.top_articles_default_limit
            return ranked[offset:offset + limit]

        except Exception as e:
            self._log_service_error(e, "Error fetching top articles")
            return []

    async def get_brand_analytics(self, brand_id: uuid.UUID, filters: AnalyticsFilter) -> Dict[str, Any]:
        """
        Get the dashboard bundle for one brand.
        """
        brand_filters = AnalyticsFilter(
            start_date=filters.start_date,
            end_date=filters.end_date,
            brand_id=brand_id,
        )
        top_filters = brand_filters.model_copy(update={"limit": COMPOSITE_TOP_ARTICLES_LIMIT})

        return {
            "brand_id": brand_id,
            "views_over_time": await self.get_views_over_time(brand_filters),
            "device_breakdown": await self.get_device_breakdown(brand_filters),
            "geographic_distribution": await self.get_geographic_distribution(brand_filters),
            "top_articles": await self.get_top_articles(top_filters),
        }

    async def get_article_analytics(self, article_id: uuid.UUID, filters: AnalyticsFilter) -> Dict[str, Any]:
        """
        Get the dashboard bundle for one article.
        """
        article_filters = AnalyticsFilter(
            start_date=filters.start_date,
            end_date=filters.end_date,
            article_id=article_id,
        )

        return {
            "article_id": article_id,
            "views_over_time": await self.get_views_over_time(article_filters),
            "device_breakdown": await self.get_device_breakdown(article_filters),
            "geographic_distribution": await self.get_geographic_distribution(article_filters),
        }

    async def _fetch_export_page(self, filters: AnalyticsFilter, skip: int, take: int) -> List[Any]:
        """
        Fetch one page of export rows, newest first.

        Rows expose timestamp, article_title, brand_name, country, city,
        browser, os, device and referrer.
        """
        stmt = self._apply_conditions(
            select(
                PageView.timestamp,
                Article.title.label("article_title"),
                NewsBrand.name.label("brand_name"),
                PageView.country,
                PageView.city,
                PageView.browser,
                PageView.os,
                PageView.device,
                PageView.referrer,
            )
            .join(Article, PageView.article_id == Article.id)
            .join(NewsBrand, Article.brand_id == NewsBrand.id)
            .order_by(PageView.timestamp.desc(), PageView.id)
            .offset(skip)
            .limit(take),
            self._build_page_view_conditions(filters),
        )
        result = await self.db_session.execute(stmt)
        return list(result.all())

    async def _iter_csv(self, filters: AnalyticsFilter, first_page: List[Any]) -> AsyncIterator[str]:
        yield CSV_HEADER

        page = first_page
        skip = 0
        try:
            while True:
                if page:
                    yield format_csv_rows(page_view_to_csv_values(row) for row in page)

                if len(page) < EXPORT_PAGE_SIZE:
                    break

                skip += EXPORT_PAGE_SIZE
                page = await self._fetch_export_page(filters, skip, EXPORT_PAGE_SIZE)

        except Exception as e:
            # Headers are already sent; the download ends early
            self._log_service_error(e, f"CSV export interrupted after {skip} rows")

    async def stream_analytics_csv(self, filters: AnalyticsFilter) -> Response:
        """
        Export filtered page views as a streamed CSV download.

        The first page is fetched before any byte is sent so an early storage
        failure can still produce a 500 response.

        Args:
            filters: Analytics filter

        Returns:
            StreamingResponse with the CSV body, or a 500 JSON response
        """
        try:
            first_page = await self._fetch_export_page(filters, 0, EXPORT_PAGE_SIZE)
        except Exception as e:
            self._log_service_error(e, "Error starting CSV export")
            return generate_response(
                status_code=500,
                response_message="Failed to export analytics data",
                customer_message="Failed to export analytics data",
            )

        return StreamingResponse(
            self._iter_csv(filters, first_page),
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
        )

    def _get_fallback_global_stats(self) -> Dict[str, int]:
        """Get fallback global stats when storage is unavailable"""
        return {
            "total_views": 0,
            "total_articles": 0,
            "total_brands": 0,
        }
