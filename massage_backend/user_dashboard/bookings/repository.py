import logging
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload

from massage_backend.db.models import (
    Booking,
    BookingAddonItem,
    BookingServiceItem,
    BookingStatus,
    Promotion,
    PromotionUsage,
)

logger = logging.getLogger(__name__)


class BookingRepository:
    """Writes and reads of bookings, their line items and promotion usage.

    Inserts only flush; ``atomic()`` owns the commit so a booking and its
    lines are stored together or not at all.
    """

    def __init__(self, session: AsyncSession, current_user_id: Optional[uuid.UUID] = None):
        self.session = session
        self.current_user_id = current_user_id

    @asynccontextmanager
    async def atomic(self):
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def get_current_user_id(self) -> Optional[uuid.UUID]:
        return self.current_user_id

    async def insert_booking(self, booking: Booking) -> Booking:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def insert_service_lines(self, booking_id: uuid.UUID, lines: List[BookingServiceItem]) -> None:
        for line in lines:
            line.booking_id = booking_id
            self.session.add(line)
        await self.session.flush()

    async def insert_addon_lines(self, booking_id: uuid.UUID, lines: List[BookingAddonItem]) -> None:
        for line in lines:
            line.booking_id = booking_id
            self.session.add(line)
        await self.session.flush()

    async def insert_promotion_usage(self, usage: PromotionUsage) -> bool:
        """Record a redemption if the promotion still has room for it.

        The promotion row is locked while both limits are re-checked, the
        usage row inserted and ``usage_count`` incremented, so concurrent
        redemptions cannot overshoot a limit. Returns False (nothing written)
        when a limit is already reached.
        """
        try:
            result = await self.session.exec(
                select(Promotion).where(Promotion.id == usage.promotion_id).with_for_update()
            )
            promotion = result.first()
            if promotion is None:
                await self.session.rollback()
                return False

            if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
                await self.session.rollback()
                return False

            if promotion.usage_limit_per_user is not None:
                count_result = await self.session.exec(
                    select(func.count())
                    .select_from(PromotionUsage)
                    .where(
                        PromotionUsage.promotion_id == usage.promotion_id,
                        PromotionUsage.user_id == usage.user_id
                    )
                )
                if (count_result.one() or 0) >= promotion.usage_limit_per_user:
                    await self.session.rollback()
                    return False

            self.session.add(usage)
            promotion.usage_count = (promotion.usage_count or 0) + 1
            self.session.add(promotion)
            await self.session.commit()
            return True
        except Exception:
            await self.session.rollback()
            raise

    def _with_lines(self, statement):
        return statement.options(
            selectinload(Booking.services),
            selectinload(Booking.addons),
        ).execution_options(populate_existing=True)

    async def get_customer_bookings(self, customer_id: uuid.UUID) -> List[Booking]:
        result = await self.session.exec(
            self._with_lines(select(Booking))
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
        )
        return result.all()

    async def get_bookings_by_status(self, customer_id: uuid.UUID, status: BookingStatus) -> List[Booking]:
        result = await self.session.exec(
            self._with_lines(select(Booking))
            .where(Booking.customer_id == customer_id, Booking.status == status)
            .order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
        )
        return result.all()

    async def get_upcoming_bookings(self, customer_id: uuid.UUID, today: date) -> List[Booking]:
        result = await self.session.exec(
            self._with_lines(select(Booking))
            .where(
                Booking.customer_id == customer_id,
                Booking.status.in_([BookingStatus.pending, BookingStatus.confirmed]),
                Booking.booking_date >= today
            )
            .order_by(Booking.booking_date.asc(), Booking.booking_time.asc())
        )
        return result.all()

    async def get_booking_by_id(self, booking_id: uuid.UUID) -> Optional[Booking]:
        result = await self.session.exec(
            self._with_lines(select(Booking)).where(Booking.id == booking_id)
        )
        return result.one_or_none()

    async def get_booking_by_number(self, booking_number: str) -> Optional[Booking]:
        result = await self.session.exec(
            self._with_lines(select(Booking)).where(Booking.booking_number == booking_number)
        )
        return result.one_or_none()

    async def save(self, booking: Booking) -> Booking:
        self.session.add(booking)
        await self.session.commit()
        await self.session.refresh(booking, attribute_names=["services", "addons"])
        return booking
