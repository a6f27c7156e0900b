import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional

from massage_backend.db.models import DiscountType, Promotion, PromotionScope, PromotionStatus, as_utc, utc_now
from massage_backend.errors import PromotionDataError
from .repository import canonical_code
from .schemas import PromoErrorKind, PromoValidateResponse, PromotionSummary

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    promotion: Optional[Promotion] = None
    discount_amount: Decimal = ZERO
    error_kind: Optional[PromoErrorKind] = None

    def to_response(self) -> PromoValidateResponse:
        return PromoValidateResponse(
            valid=self.valid,
            error_kind=self.error_kind,
            discount_amount=self.discount_amount,
            promotion=PromotionSummary.model_validate(self.promotion) if self.promotion else None,
        )


def compute_discount(promotion: Promotion, order_amount: Decimal) -> Decimal:
    """Discount for an order that already passed every eligibility check.

    Percentage discounts are capped by ``max_discount``; any discount is
    clamped to the order amount and rounded half-up to 2 places.
    """
    value = to_money(promotion.discount_value)
    if value < 0:
        logger.error(f"Promotion {promotion.code} has negative discount_value {value}")
        raise PromotionDataError(f"Promotion {promotion.code} has a negative discount value")

    if promotion.discount_type == DiscountType.percentage:
        raw = order_amount * value / Decimal(100)
        if promotion.max_discount is not None:
            cap = to_money(promotion.max_discount)
            if cap < 0:
                logger.error(f"Promotion {promotion.code} has negative max_discount {cap}")
                raise PromotionDataError(f"Promotion {promotion.code} has a negative max discount")
            raw = min(raw, cap)
    elif promotion.discount_type == DiscountType.fixed_amount:
        raw = value
    else:
        logger.error(f"Promotion {promotion.code} has unknown discount_type {promotion.discount_type!r}")
        raise PromotionDataError(f"Promotion {promotion.code} has an unknown discount type")

    # never above the order amount, never below zero
    return max(min(raw, order_amount), ZERO).quantize(CENT, rounding=ROUND_HALF_UP)


def _matches_scope(promotion: Promotion, service_ids: Iterable, categories: Iterable) -> bool:
    if promotion.applies_to == PromotionScope.specific_services and promotion.target_services:
        targets = {str(s) for s in promotion.target_services}
        return not targets.isdisjoint(str(s) for s in service_ids)
    if promotion.applies_to == PromotionScope.categories and promotion.target_categories:
        targets = {str(c) for c in promotion.target_categories}
        return not targets.isdisjoint(str(c) for c in categories)
    return True


class PromoValidator:
    """Decides whether a promo code can be applied to an order.

    Read-only: redemption is recorded when the booking is written.
    """

    def __init__(self, repository, clock: Callable[[], datetime] = None):
        self.repository = repository
        self.clock = clock or utc_now

    def _reject(self, code: str, kind: PromoErrorKind, promotion: Optional[Promotion] = None) -> ValidationResult:
        logger.info(f"Promo code {code!r} rejected: {kind.value}")
        return ValidationResult(valid=False, promotion=promotion, error_kind=kind)

    async def validate(
        self,
        code: str,
        order_amount,
        user_id: Optional[uuid.UUID],
        service_ids: Iterable = (),
        categories: Iterable = (),
    ) -> ValidationResult:
        code = canonical_code(code)
        amount = to_money(order_amount)

        promotion = await self.repository.find_by_code(code) if code else None
        if promotion is None:
            return self._reject(code, PromoErrorKind.code_invalid)

        if promotion.status != PromotionStatus.active:
            return self._reject(code, PromoErrorKind.code_invalid, promotion)

        # not started and already ended are reported the same way
        now = as_utc(self.clock())
        if now < as_utc(promotion.start_date) or now > as_utc(promotion.end_date):
            return self._reject(code, PromoErrorKind.code_invalid, promotion)

        if promotion.min_order_amount is not None and amount < to_money(promotion.min_order_amount):
            return self._reject(code, PromoErrorKind.min_order_not_met, promotion)

        if promotion.usage_limit is not None and (promotion.usage_count or 0) >= promotion.usage_limit:
            return self._reject(code, PromoErrorKind.limit_reached, promotion)

        if promotion.usage_limit_per_user is not None and user_id is not None:
            used = await self.repository.count_usage_by_user(promotion.id, user_id)
            if used >= promotion.usage_limit_per_user:
                return self._reject(code, PromoErrorKind.limit_reached, promotion)

        if not _matches_scope(promotion, service_ids or (), categories or ()):
            return self._reject(code, PromoErrorKind.not_applicable, promotion)

        discount = compute_discount(promotion, amount)
        return ValidationResult(valid=True, promotion=promotion, discount_amount=discount)
