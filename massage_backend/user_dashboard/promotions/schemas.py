from decimal import Decimal
from enum import Enum
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from massage_backend.db.models import DiscountType


class PromoErrorKind(str, Enum):
    # values are the translation keys used by the customer app
    code_invalid = "voucherInvalid"
    min_order_not_met = "voucherMinOrder"
    limit_reached = "voucherUsed"
    not_applicable = "voucherNotApplicable"


class PromoValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    order_amount: Decimal = Field(ge=0)
    service_ids: List[str] = []
    categories: List[str] = []


class PromotionSummary(BaseModel):
    id: uuid.UUID
    code: str
    name_en: str
    name_th: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    max_discount: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('discount_value', 'max_discount')
    def _serialize_amounts(self, value: Optional[Decimal]) -> Optional[float]:
        return None if value is None else float(value)


class PromoValidateResponse(BaseModel):
    valid: bool
    error_kind: Optional[PromoErrorKind] = None
    discount_amount: Decimal = Decimal("0.00")
    promotion: Optional[PromotionSummary] = None

    @field_serializer('discount_amount')
    def _serialize_discount(self, value: Decimal) -> float:
        return float(value)
