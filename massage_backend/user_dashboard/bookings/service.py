import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from massage_backend.db.models import (
    Booking,
    BookingAddonItem,
    BookingServiceItem,
    BookingStatus,
    PaymentStatus,
    PromotionUsage,
    utc_now,
)
from massage_backend.errors import (
    BookingNotCancellable,
    BookingNotFound,
    BookingWriteError,
    InvalidBookingRequest,
)
from massage_backend.user_dashboard.promotions.service import CENT, ZERO, to_money
from .schemas import BookingAddonInput, BookingCreate, BookingServiceInput

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)


def select_primary_service(services: Sequence[BookingServiceInput]) -> BookingServiceInput:
    for line in services:
        if line.recipient_index == 0:
            return line
    logger.warning("No service line for recipient 0, using the first line as primary service")
    return services[0]


class BookingWriter:
    """Stores a booking with its service lines, add-on lines and promotion usage.

    The booking row and its lines are written in one transaction. Promotion
    usage is recorded afterwards and never fails an already stored booking.
    """

    def __init__(self, repository):
        self.repository = repository

    async def create_booking_with_services(
        self,
        booking_data: BookingCreate,
        services: List[BookingServiceInput],
        addons: Optional[List[BookingAddonInput]] = None,
    ) -> uuid.UUID:
        if not services:
            raise InvalidBookingRequest("A booking needs at least one service")
        addons = addons or []

        primary = select_primary_service(services)
        addons_total = sum((to_money(a.total_price) for a in addons), ZERO)

        booking = Booking(
            **booking_data.model_dump(exclude={"discount_amount"}),
            service_id=primary.service_id,
            duration=primary.duration,
            base_price=to_money(primary.price),
            is_multi_service=len(services) > 1,
            addons_total=addons_total.quantize(CENT),
            discount_amount=to_money(booking_data.discount_amount or ZERO),
            status=BookingStatus.pending,
            payment_status=PaymentStatus.pending,
        )

        try:
            async with self.repository.atomic():
                booking = await self.repository.insert_booking(booking)
                await self.repository.insert_service_lines(booking.id, [
                    BookingServiceItem(
                        booking_id=booking.id,
                        service_id=line.service_id,
                        duration=line.duration,
                        price=to_money(line.price),
                        recipient_index=line.recipient_index,
                        recipient_name=line.recipient_name,
                        sort_order=line.sort_order if line.sort_order is not None else 0,
                    )
                    for line in services
                ])
                if addons:
                    await self.repository.insert_addon_lines(booking.id, [
                        BookingAddonItem(
                            booking_id=booking.id,
                            addon_id=addon.service_addon_id,
                            quantity=addon.quantity,
                            price_per_unit=to_money(addon.price_per_unit),
                            total_price=to_money(addon.total_price),
                        )
                        for addon in addons
                    ])
        except Exception as e:
            logger.error(f"Booking write failed for customer {booking_data.customer_id}: {e}")
            raise BookingWriteError("Could not complete booking") from e

        booking_id = booking.id
        logger.info(
            f"Booking {booking.booking_number} created with {len(services)} services "
            f"and {len(addons)} addons"
        )

        if booking_data.promotion_id and booking_data.discount_amount and booking_data.discount_amount > 0:
            await self._record_promotion_usage(booking_id, booking_data.promotion_id, booking_data.discount_amount)

        return booking_id

    async def _record_promotion_usage(self, booking_id: uuid.UUID, promotion_id: uuid.UUID, discount: Decimal):
        user_id = await self.repository.get_current_user_id()
        if user_id is None:
            logger.warning(f"No authenticated user, promotion {promotion_id} usage not recorded for booking {booking_id}")
            return

        usage = PromotionUsage(
            promotion_id=promotion_id,
            user_id=user_id,
            booking_id=booking_id,
            discount_amount=to_money(discount),
        )
        try:
            claimed = await self.repository.insert_promotion_usage(usage)
        except Exception:
            logger.exception(f"Could not record promotion {promotion_id} usage for booking {booking_id}")
            return

        if not claimed:
            logger.warning(f"Promotion {promotion_id} limit reached, usage not recorded for booking {booking_id}")


class BookingService:
    def __init__(self, repository):
        self.repository = repository

    async def list_bookings(self, customer_id: uuid.UUID, status: Optional[BookingStatus] = None) -> List[Booking]:
        if status is not None:
            return await self.repository.get_bookings_by_status(customer_id, status)
        return await self.repository.get_customer_bookings(customer_id)

    async def get_upcoming(self, customer_id: uuid.UUID, today: Optional[date] = None) -> List[Booking]:
        return await self.repository.get_upcoming_bookings(customer_id, today or utc_now().date())

    def _check_owner(self, booking: Optional[Booking], customer_id: Optional[uuid.UUID]) -> Booking:
        # other customers' bookings are reported as missing
        if booking is None or (customer_id is not None and booking.customer_id != customer_id):
            raise BookingNotFound()
        return booking

    async def get_booking(self, booking_id: uuid.UUID, customer_id: Optional[uuid.UUID] = None) -> Booking:
        booking = await self.repository.get_booking_by_id(booking_id)
        return self._check_owner(booking, customer_id)

    async def get_booking_by_number(self, booking_number: str, customer_id: Optional[uuid.UUID] = None) -> Booking:
        booking = await self.repository.get_booking_by_number(booking_number.strip().upper())
        return self._check_owner(booking, customer_id)

    async def cancel_booking(self, booking_id: uuid.UUID, customer_id: Optional[uuid.UUID] = None) -> Booking:
        booking = await self.get_booking(booking_id, customer_id)

        if booking.status == BookingStatus.cancelled:
            return booking

        if booking.status not in CANCELLABLE_STATUSES:
            raise BookingNotCancellable()

        booking.status = BookingStatus.cancelled
        booking.cancelled_at = utc_now()
        booking = await self.repository.save(booking)
        logger.info(f"Booking {booking.booking_number} cancelled")
        return booking
