import uuid
from typing import Optional

from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession

from massage_backend.db.models import Promotion, PromotionUsage


def canonical_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class PromotionRepository:
    """Read access to promotions for code validation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_code(self, code: str) -> Optional[Promotion]:
        result = await self.session.exec(
            select(Promotion).where(Promotion.code == canonical_code(code))
        )
        return result.first()

    async def count_usage_by_user(self, promotion_id: uuid.UUID, user_id: uuid.UUID) -> int:
        result = await self.session.exec(
            select(func.count())
            .select_from(PromotionUsage)
            .where(
                PromotionUsage.promotion_id == promotion_id,
                PromotionUsage.user_id == user_id
            )
        )
        return result.one() or 0
