import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from sqlmodel import select, desc
from sqlmodel.ext.asyncio.session import AsyncSession

from massage_backend.config import Config
from massage_backend.db.models import Promotion, PromotionUsage, as_utc, utc_now
from massage_backend.db.redis import get_cache, set_cache, delete_cache
from massage_backend.errors import PromotionAlreadyExists, PromotionDataError, PromotionNotFound
from massage_backend.user_dashboard.promotions.repository import canonical_code
from .schemas import DailyUsage, PromotionCreate, PromotionReport, PromotionUpdate, UsageDetail

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def report_cache_key(promotion_id) -> str:
    return f"promotion_report:{promotion_id}"


def summarize_usage(promotion: Promotion, usages: Iterable[PromotionUsage]) -> PromotionReport:
    """Aggregate usage rows into totals plus a per-day breakdown."""
    usages = sorted(usages, key=lambda u: u.used_at, reverse=True)

    total = Decimal("0")
    users = set()
    daily = {}
    for usage in usages:
        amount = Decimal(str(usage.discount_amount or 0))
        total += amount
        users.add(usage.user_id)
        day = usage.used_at.date()
        if day not in daily:
            daily[day] = {'count': 0, 'discount': Decimal("0")}
        daily[day]['count'] += 1
        daily[day]['discount'] += amount

    count = len(usages)
    avg = (total / count).quantize(CENT, rounding=ROUND_HALF_UP) if count else Decimal("0")

    return PromotionReport(
        promotion_id=promotion.id,
        code=promotion.code,
        total_usage=count,
        unique_users=len(users),
        total_discount=float(total.quantize(CENT, rounding=ROUND_HALF_UP)),
        avg_discount=float(avg),
        usage_by_date=[
            DailyUsage(date=day, count=data["count"], total_discount=float(data["discount"]))
            for day, data in sorted(daily.items())
        ],
        usages=[
            UsageDetail(
                id=u.id,
                user_id=u.user_id,
                booking_id=u.booking_id,
                discount_amount=float(u.discount_amount or 0),
                used_at=u.used_at,
            )
            for u in usages
        ],
    )


class PromotionAdminService:
    async def list_promotions(self, session: AsyncSession) -> List[Promotion]:
        result = await session.exec(select(Promotion).order_by(desc(Promotion.created_at)))
        return result.all()

    async def get_promotion(self, session: AsyncSession, promotion_id: uuid.UUID) -> Promotion:
        promotion = await session.get(Promotion, promotion_id)
        if promotion is None:
            raise PromotionNotFound()
        return promotion

    async def _ensure_code_free(self, session: AsyncSession, code: str, exclude_id=None):
        statement = select(Promotion).where(Promotion.code == code)
        if exclude_id is not None:
            statement = statement.where(Promotion.id != exclude_id)
        result = await session.exec(statement)
        if result.first() is not None:
            raise PromotionAlreadyExists()

    async def create_promotion(self, session: AsyncSession, data: PromotionCreate) -> Promotion:
        payload = data.model_dump()
        payload['code'] = canonical_code(payload['code'])
        await self._ensure_code_free(session, payload['code'])

        promotion = Promotion(**payload)
        session.add(promotion)
        await session.commit()
        await session.refresh(promotion)
        logger.info(f"Promotion {promotion.code} created")
        return promotion

    async def update_promotion(self, session: AsyncSession, promotion_id: uuid.UUID, data: PromotionUpdate) -> Promotion:
        promotion = await self.get_promotion(session, promotion_id)
        update_data = data.model_dump(exclude_unset=True)

        if 'code' in update_data:
            update_data['code'] = canonical_code(update_data['code'])
            await self._ensure_code_free(session, update_data['code'], exclude_id=promotion.id)

        start = update_data.get('start_date', promotion.start_date)
        end = update_data.get('end_date', promotion.end_date)
        if start and end and as_utc(end) < as_utc(start):
            raise PromotionDataError("end_date must not be before start_date")

        for k, v in update_data.items():
            setattr(promotion, k, v)
        promotion.updated_at = utc_now()

        session.add(promotion)
        await session.commit()
        await session.refresh(promotion)
        await delete_cache(report_cache_key(promotion.id))
        logger.info(f"Promotion {promotion.code} updated")
        return promotion

    async def delete_promotion(self, session: AsyncSession, promotion_id: uuid.UUID) -> bool:
        promotion = await self.get_promotion(session, promotion_id)
        await session.delete(promotion)
        await session.commit()
        await delete_cache(report_cache_key(promotion_id))
        logger.info(f"Promotion {promotion.code} deleted")
        return True

    async def get_report(self, session: AsyncSession, promotion_id: uuid.UUID) -> PromotionReport:
        cache_key = report_cache_key(promotion_id)
        cached = await get_cache(cache_key)
        if cached:
            return PromotionReport.model_validate(cached)

        promotion = await self.get_promotion(session, promotion_id)
        result = await session.exec(
            select(PromotionUsage).where(PromotionUsage.promotion_id == promotion_id)
        )
        report = summarize_usage(promotion, result.all())

        await set_cache(cache_key, report.model_dump(mode="json"), expiry=Config.PROMOTION_REPORT_CACHE_SECONDS)
        return report
