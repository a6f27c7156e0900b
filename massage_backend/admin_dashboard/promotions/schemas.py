from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from massage_backend.db.models import DiscountType, PromotionScope, PromotionStatus, as_utc


def _check_discount(discount_type, discount_value):
    if discount_type == DiscountType.percentage and discount_value is not None and discount_value > 100:
        raise ValueError("percentage discount cannot exceed 100")


def _check_dates(start_date, end_date):
    if start_date and end_date and as_utc(end_date) < as_utc(start_date):
        raise ValueError("end_date must not be before start_date")


class PromotionBase(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name_en: str
    name_th: Optional[str] = None
    description_en: Optional[str] = None
    description_th: Optional[str] = None
    status: PromotionStatus = PromotionStatus.draft
    start_date: datetime
    end_date: datetime
    discount_type: DiscountType = DiscountType.percentage
    discount_value: Decimal = Field(ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    min_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_limit_per_user: Optional[int] = Field(default=None, ge=0)
    applies_to: PromotionScope = PromotionScope.all
    target_services: Optional[List[str]] = None
    target_categories: Optional[List[str]] = None


class PromotionCreate(PromotionBase):
    @model_validator(mode="after")
    def _check(self):
        _check_discount(self.discount_type, self.discount_value)
        _check_dates(self.start_date, self.end_date)
        return self


class PromotionUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name_en: Optional[str] = None
    name_th: Optional[str] = None
    description_en: Optional[str] = None
    description_th: Optional[str] = None
    status: Optional[PromotionStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, ge=0)
    min_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_limit_per_user: Optional[int] = Field(default=None, ge=0)
    applies_to: Optional[PromotionScope] = None
    target_services: Optional[List[str]] = None
    target_categories: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check(self):
        # cross-field checks against the stored row happen in the service
        _check_discount(self.discount_type, self.discount_value)
        _check_dates(self.start_date, self.end_date)
        return self


class PromotionResponse(PromotionBase):
    id: uuid.UUID
    usage_count: int
    applies_to: Optional[PromotionScope] = PromotionScope.all
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('discount_value', 'max_discount', 'min_order_amount')
    def _serialize_amounts(self, value: Optional[Decimal]) -> Optional[float]:
        return None if value is None else float(value)


class DailyUsage(BaseModel):
    date: date
    count: int
    total_discount: float


class UsageDetail(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    booking_id: Optional[uuid.UUID] = None
    discount_amount: float
    used_at: datetime


class PromotionReport(BaseModel):
    promotion_id: uuid.UUID
    code: str
    total_usage: int = 0
    unique_users: int = 0
    total_discount: float = 0.0
    avg_discount: float = 0.0
    usage_by_date: List[DailyUsage] = []
    usages: List[UsageDetail] = []
