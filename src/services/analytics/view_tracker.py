"""
Page view recording.
Enriches a captured request with anonymized address, location and
user-agent details and persists it as a PageView row.
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.analytics_models import PageView, UNKNOWN_IP_SENTINEL, REFERRER_MAX_LENGTH
from src.models.content_models import Article, ARTICLE_STATUS_PUBLISHED
from src.services.analytics.service_base import BaseService
from src.services.geoip_service import GeoIPResult, GeoIPService
from src.utils.custom_utils import utcnow
from src.utils.ip_anonymizer import anonymize_ip
from src.utils.logging.error_logger import error_logger
from src.utils.user_agent_parser import UserAgentInfo, parse_user_agent

T = TypeVar("T")


@dataclass(frozen=True)
class PageViewContext:
    """Request details captured before the response is sent."""
    slug: Optional[str]
    path: str
    raw_ip: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


class ViewTracker(BaseService):
    """
    Service recording one PageView per served public article request.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], geoip_service: Optional[GeoIPService] = None):
        """
        Initialize the view tracker.

        Args:
            session_factory: Factory producing sessions independent of the request
            geoip_service: Shared GeoIP resolver
        """
        super().__init__()
        self.session_factory = session_factory
        self.geoip_service = geoip_service or GeoIPService()

    def get_service_name(self) -> str:
        return "view_tracker"

    def _enrichment_step(self, step: str, func: Callable[[], T], fallback: T) -> T:
        try:
            return func()
        except Exception as e:
            self.logger.warning(f"[{self.get_service_name()}] {step} failed: {type(e).__name__}")
            return fallback

    async def _find_published_article(self, session: AsyncSession, slug: str) -> Optional[Article]:
        stmt = select(Article).where(
            Article.slug == slug,
            Article.status == ARTICLE_STATUS_PUBLISHED,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def record_view(self, context: PageViewContext) -> bool:
        """
        Persist a page view for a published article.

        Never raises; failures are logged with the slug and path only.

        Args:
            context: Captured request details

        Returns:
            bool: True if a PageView was stored
        """
        if not context.slug:
            return False

        try:
            ip_hash = self._enrichment_step("IP anonymization", lambda: anonymize_ip(context.raw_ip), None)
            location = self._enrichment_step(
                "GeoIP lookup", lambda: self.geoip_service.lookup(context.raw_ip), GeoIPResult()
            )
            agent = self._enrichment_step(
                "User-Agent parsing", lambda: parse_user_agent(context.user_agent), UserAgentInfo()
            )

            async with self.session_factory() as session:
                article = await self._find_published_article(session, context.slug)
                if article is None:
                    self.logger.debug(
                        f"[{self.get_service_name()}] No published article for slug {context.slug}; view not recorded"
                    )
                    return False

                page_view = PageView(
                    article_id=article.id,
                    timestamp=utcnow(),
                    ip_address=ip_hash or UNKNOWN_IP_SENTINEL,
                    country=location.country,
                    city=location.city,
                    browser=agent.browser,
                    os=agent.os,
                    device=agent.device,
                    referrer=context.referrer[:REFERRER_MAX_LENGTH] if context.referrer else None,
                )
                session.add(page_view)
                await session.commit()

            return True

        except Exception as e:
            self.logger.error(
                f"[{self.get_service_name()}] Page view tracking error for {context.slug} on {context.path}: "
                f"{type(e).__name__}"
            )
            error_logger.log_tracking_error(e, context.slug, context.path)
            return False
