from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
import uuid

from src.utils.custom_utils import ensure_utc


class CamelModel(BaseModel):
    """Base schema serialising field names as camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyticsFilter(CamelModel):
    """
    Conjunctive filter over page views.
    Absent fields impose no constraint.
    """
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    brand_id: Optional[uuid.UUID] = None
    article_id: Optional[uuid.UUID] = None
    limit: Optional[int] = Field(default=None, gt=0)
    offset: Optional[int] = Field(default=None, ge=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalise_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_date_order(self) -> "AnalyticsFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class GlobalStatsResponse(CamelModel):
    """Global analytics counters"""
    total_views: int
    total_articles: int
    total_brands: int


class ViewsOverTimeResponse(CamelModel):
    """Views per UTC calendar day"""
    date: str
    views: int


class DeviceBreakdownResponse(CamelModel):
    """Share of views per device category"""
    device: str
    count: int
    percentage: float


class GeographicDistributionResponse(CamelModel):
    """Views per country"""
    country: str
    count: int


class TopArticleResponse(CamelModel):
    """Article ranked by view count"""
    id: uuid.UUID
    title: str
    brand: str
    views: int
    last_viewed: datetime


class BrandAnalyticsResponse(CamelModel):
    """Dashboard bundle for a single brand"""
    brand_id: uuid.UUID
    views_over_time: List[ViewsOverTimeResponse]
    device_breakdown: List[DeviceBreakdownResponse]
    geographic_distribution: List[GeographicDistributionResponse]
    top_articles: List[TopArticleResponse]


class ArticleAnalyticsResponse(CamelModel):
    """Dashboard bundle for a single article"""
    article_id: uuid.UUID
    views_over_time: List[ViewsOverTimeResponse]
    device_breakdown: List[DeviceBreakdownResponse]
    geographic_distribution: List[GeographicDistributionResponse]
