from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from typing import Dict, Any, List, Optional
import uuid

from src.services.analytics import AnalyticsService
from src.services.service_factory import get_analytics_service
from src.schemas.analytics_schemas import (
    AnalyticsFilter,
    GlobalStatsResponse,
    ViewsOverTimeResponse,
    DeviceBreakdownResponse,
    GeographicDistributionResponse,
    TopArticleResponse,
    BrandAnalyticsResponse,
    ArticleAnalyticsResponse,
)
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import INVALID_QUERY_MESSAGE, format_validation_errors

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def get_analytics_filter(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    brand_id_param: Optional[str] = Query(None, alias="brandId"),
    article_id_param: Optional[str] = Query(None, alias="articleId"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
) -> AnalyticsFilter:
    """
    Build an AnalyticsFilter from camelCase query parameters.

    Raises:
        HTTPException: 400 when a value does not validate
    """
    raw = {
        "start_date": start_date,
        "end_date": end_date,
        "brand_id": brand_id_param,
        "article_id": article_id_param,
        "limit": limit,
        "offset": offset,
    }
    try:
        return AnalyticsFilter.model_validate({k: v for k, v in raw.items() if v not in (None, "")})
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": INVALID_QUERY_MESSAGE, "details": format_validation_errors(e.errors())},
        )


def _dump(schema, data) -> Dict[str, Any]:
    return schema.model_validate(data).model_dump(mode="json", by_alias=True)


def _dump_list(schema, items) -> List[Dict[str, Any]]:
    return [_dump(schema, item) for item in items]


@router.get("/overview", response_model=Dict[str, Any])
async def get_overview(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Get global analytics counters

    Returns total views, published articles and active brands for the filter.
    """
    stats = await analytics_service.get_global_stats(filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Global stats retrieved successfully",
        customer_message="Analytics overview retrieved",
        body=_dump(GlobalStatsResponse, stats)
    )


@router.get("/views-over-time", response_model=Dict[str, Any])
async def get_views_over_time(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Get views per UTC day
    """
    series = await analytics_service.get_views_over_time(filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Views over time retrieved successfully",
        customer_message="Views over time retrieved",
        body=_dump_list(ViewsOverTimeResponse, series)
    )


@router.get("/device-breakdown", response_model=Dict[str, Any])
async def get_device_breakdown(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    breakdown = await analytics_service.get_device_breakdown(filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Device breakdown retrieved successfully",
        customer_message="Device breakdown retrieved",
        body=_dump_list(DeviceBreakdownResponse, breakdown)
    )


@router.get("/geographic", response_model=Dict[str, Any])
async def get_geographic_distribution(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    distribution = await analytics_service.get_geographic_distribution(filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Geographic distribution retrieved successfully",
        customer_message="Geographic distribution retrieved",
        body=_dump_list(GeographicDistributionResponse, distribution)
    )


@router.get("/top-articles", response_model=Dict[str, Any])
async def get_top_articles(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Get the most viewed articles

    Supports `limit` (default 10) and `offset` for paging through the ranking.
    """
    articles = await analytics_service.get_top_articles(filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Top articles retrieved successfully",
        customer_message="Top articles retrieved",
        body=_dump_list(TopArticleResponse, articles)
    )


@router.get("/brand/{brand_id}", response_model=Dict[str, Any])
async def get_brand_analytics(
    brand_id: uuid.UUID,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Get the dashboard bundle for one brand

    Includes views over time, device and geographic breakdowns and the top 10 articles.
    """
    analytics = await analytics_service.get_brand_analytics(brand_id, filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Brand analytics retrieved successfully",
        customer_message="Brand analytics retrieved",
        body=_dump(BrandAnalyticsResponse, analytics)
    )


@router.get("/article/{article_id}", response_model=Dict[str, Any])
async def get_article_analytics(
    article_id: uuid.UUID,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Get the dashboard bundle for one article
    """
    analytics = await analytics_service.get_article_analytics(article_id, filters)

    return generate_response(
        status_code=status.HTTP_200_OK,
        response_message="Article analytics retrieved successfully",
        customer_message="Article analytics retrieved",
        body=_dump(ArticleAnalyticsResponse, analytics)
    )


@router.get("/export")
async def export_analytics(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Download filtered page views as CSV

    The file is streamed page by page; client addresses are never included.
    """
    return await analytics_service.stream_analytics_csv(filters)
