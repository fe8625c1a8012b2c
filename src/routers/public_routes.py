from fastapi import APIRouter, Depends, Path, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from typing import Dict, Any

from src.database import get_db
from src.middleware.analytics_middleware import track_page_view
from src.models.content_models import Article, NewsBrand, ARTICLE_STATUS_PUBLISHED
from src.schemas.content_schemas import PublicArticleResponse
from src.utils.custom_utils import ensure_utc, generate_response

router = APIRouter(prefix="/public", tags=["Public"])


def brand_name_from_slug(brand_slug: str) -> str:
    """Brand slugs are lowercased names with spaces replaced by hyphens."""
    return brand_slug.replace("-", " ").strip().lower()


def _article_not_found():
    return generate_response(
        status_code=status.HTTP_404_NOT_FOUND,
        response_message="Article not found",
        customer_message="The article you are looking for does not exist",
        body=None
    )


@router.get(
    "/{brand_slug}/article/{year}/{month}/{slug}",
    response_model=Dict[str, Any],
    dependencies=[Depends(track_page_view)],
)
async def get_public_article(
    brand_slug: str,
    slug: str,
    year: int = Path(..., ge=1000, le=9999),
    month: int = Path(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a published article by brand, publication month and slug

    Each served request is recorded as a page view after the response is sent.
    """
    brand_stmt = select(NewsBrand).where(func.lower(NewsBrand.name) == brand_name_from_slug(brand_slug))
    brand = (await db.execute(brand_stmt)).scalars().first()
    if brand is None:
        return _article_not_found()

    article_stmt = (
        select(Article)
        .where(
            Article.slug == slug,
            Article.brand_id == brand.id,
            Article.status == ARTICLE_STATUS_PUBLISHED,
        )
        .options(selectinload(Article.brand))
    )
    article = (await db.execute(article_stmt)).scalars().first()
    if article is None or article.published_at is None:
        return _article_not_found()

    published_at = ensure_utc(article.published_at)
    if published_at.year != year or published_at.month != month:
        return _article_not_found()

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Article retrieved successfully",
        customer_message="Article retrieved",
        body=PublicArticleResponse.model_validate(article).model_dump(mode="json", by_alias=True)
    )
