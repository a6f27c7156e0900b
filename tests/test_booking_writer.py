"""Tests for writing bookings with service lines, add-ons and promotion usage."""
import logging
import uuid
from datetime import date, time
from decimal import Decimal

import pytest

from massage_backend.db.models import BookingStatus, PaymentStatus, ServiceFormat
from massage_backend.errors import BookingNotCancellable, BookingNotFound, BookingWriteError, InvalidBookingRequest
from massage_backend.user_dashboard.bookings.schemas import BookingAddonInput, BookingServiceInput
from massage_backend.user_dashboard.bookings.service import BookingService, BookingWriter

from conftest import make_promotion


def _couple_services():
    return [
        BookingServiceInput(service_id=uuid.uuid4(), duration=60, price=Decimal("800"), recipient_index=0, recipient_name="Somchai"),
        BookingServiceInput(service_id=uuid.uuid4(), duration=90, price=Decimal("1100"), recipient_index=1, recipient_name="Malee", sort_order=1),
    ]


@pytest.mark.asyncio
async def test_single_service_booking(booking_repository, booking_data, single_service):
    writer = BookingWriter(booking_repository)

    booking_id = await writer.create_booking_with_services(booking_data, single_service)

    assert list(booking_repository.bookings) == [booking_id]
    booking = booking_repository.bookings[booking_id]
    assert booking.is_multi_service is False
    assert booking.status == BookingStatus.pending
    assert booking.payment_status == PaymentStatus.pending
    assert booking.service_id == single_service[0].service_id
    assert booking.base_price == Decimal("1200.00")
    assert booking.booking_number.startswith("BK-")
    assert len(booking_repository.service_lines) == 1
    assert booking_repository.service_lines[0].booking_id == booking_id
    assert booking_repository.service_lines[0].sort_order == 0
    assert booking_repository.addon_lines == []


@pytest.mark.asyncio
async def test_couple_booking_has_two_lines(booking_repository, booking_data):
    services = _couple_services()
    data = booking_data.model_copy(update={"service_format": ServiceFormat.simultaneous, "recipient_count": 2})

    booking_id = await BookingWriter(booking_repository).create_booking_with_services(data, services)

    booking = booking_repository.bookings[booking_id]
    assert booking.is_multi_service is True
    assert booking.service_id == services[0].service_id
    assert booking.duration == 60
    assert [line.service_id for line in booking_repository.service_lines] == [s.service_id for s in services]
    assert [line.recipient_name for line in booking_repository.service_lines] == ["Somchai", "Malee"]


@pytest.mark.asyncio
async def test_first_line_is_primary_without_recipient_zero(booking_repository, booking_data, caplog):
    services = [
        BookingServiceInput(service_id=uuid.uuid4(), duration=60, price=Decimal("700"), recipient_index=2),
        BookingServiceInput(service_id=uuid.uuid4(), duration=90, price=Decimal("900"), recipient_index=1),
    ]

    with caplog.at_level(logging.WARNING):
        booking_id = await BookingWriter(booking_repository).create_booking_with_services(booking_data, services)

    booking = booking_repository.bookings[booking_id]
    assert booking.service_id == services[0].service_id
    assert booking.base_price == Decimal("700")
    assert "recipient 0" in caplog.text


@pytest.mark.asyncio
async def test_addons_are_written_and_totalled(booking_repository, booking_data, single_service):
    addon_id = uuid.uuid4()
    addons = [
        BookingAddonInput(service_addon_id=addon_id, quantity=2, price_per_unit=Decimal("150"), total_price=Decimal("300")),
        BookingAddonInput(service_addon_id=uuid.uuid4(), quantity=1, price_per_unit=Decimal("99.50"), total_price=Decimal("99.50")),
    ]

    booking_id = await BookingWriter(booking_repository).create_booking_with_services(booking_data, single_service, addons)

    assert booking_repository.bookings[booking_id].addons_total == Decimal("399.50")
    assert len(booking_repository.addon_lines) == 2
    assert booking_repository.addon_lines[0].addon_id == addon_id
    assert all(line.booking_id == booking_id for line in booking_repository.addon_lines)


@pytest.mark.asyncio
async def test_empty_services_rejected_before_any_write(booking_repository, booking_data):
    with pytest.raises(InvalidBookingRequest):
        await BookingWriter(booking_repository).create_booking_with_services(booking_data, [])

    assert booking_repository.bookings == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("failing_step", ["booking", "services", "addons"])
async def test_failed_insert_leaves_nothing_behind(booking_repository, booking_data, single_service, failing_step):
    booking_repository.fail_on.add(failing_step)
    addons = [BookingAddonInput(service_addon_id=uuid.uuid4(), price_per_unit=Decimal("100"), total_price=Decimal("100"))]

    with pytest.raises(BookingWriteError):
        await BookingWriter(booking_repository).create_booking_with_services(booking_data, single_service, addons)

    assert booking_repository.bookings == {}
    assert booking_repository.service_lines == []
    assert booking_repository.addon_lines == []
    assert booking_repository.usages == []


@pytest.mark.asyncio
async def test_promotion_usage_recorded(booking_repository, booking_data, single_service, customer):
    promotion = make_promotion()
    booking_repository.promotions[promotion.id] = promotion
    data = booking_data.model_copy(update={"promotion_id": promotion.id, "discount_amount": Decimal("240")})

    booking_id = await BookingWriter(booking_repository).create_booking_with_services(data, single_service)

    assert len(booking_repository.usages) == 1
    usage = booking_repository.usages[0]
    assert usage.booking_id == booking_id
    assert usage.user_id == customer.uid
    assert usage.discount_amount == Decimal("240")
    assert promotion.usage_count == 1
    assert booking_repository.bookings[booking_id].discount_amount == Decimal("240")


@pytest.mark.asyncio
@pytest.mark.parametrize("update", [
    {"discount_amount": Decimal("240")},
    {"promotion_id": "set", "discount_amount": None},
    {"promotion_id": "set", "discount_amount": Decimal("0")},
])
async def test_no_usage_without_promotion_and_discount(booking_repository, booking_data, single_service, update):
    promotion = make_promotion()
    booking_repository.promotions[promotion.id] = promotion
    if update.get("promotion_id") == "set":
        update = dict(update, promotion_id=promotion.id)
    data = booking_data.model_copy(update=update)

    await BookingWriter(booking_repository).create_booking_with_services(data, single_service)

    assert booking_repository.usages == []
    assert promotion.usage_count == 0


@pytest.mark.asyncio
async def test_no_usage_without_authenticated_user(booking_repository, booking_data, single_service):
    booking_repository.current_user_id = None
    promotion = make_promotion()
    booking_repository.promotions[promotion.id] = promotion
    data = booking_data.model_copy(update={"promotion_id": promotion.id, "discount_amount": Decimal("240")})

    booking_id = await BookingWriter(booking_repository).create_booking_with_services(data, single_service)

    assert booking_id in booking_repository.bookings
    assert booking_repository.usages == []


@pytest.mark.asyncio
async def test_refused_usage_keeps_booking(booking_repository, booking_data, single_service, caplog):
    promotion = make_promotion(usage_limit=1, usage_count=1)
    booking_repository.promotions[promotion.id] = promotion
    data = booking_data.model_copy(update={"promotion_id": promotion.id, "discount_amount": Decimal("240")})

    with caplog.at_level(logging.WARNING):
        booking_id = await BookingWriter(booking_repository).create_booking_with_services(data, single_service)

    assert booking_id in booking_repository.bookings
    assert booking_repository.usages == []
    assert promotion.usage_count == 1
    assert "limit reached" in caplog.text


@pytest.mark.asyncio
async def test_failing_usage_insert_keeps_booking(booking_repository, booking_data, single_service):
    booking_repository.fail_on.add("usage")
    promotion = make_promotion()
    booking_repository.promotions[promotion.id] = promotion
    data = booking_data.model_copy(update={"promotion_id": promotion.id, "discount_amount": Decimal("240")})

    booking_id = await BookingWriter(booking_repository).create_booking_with_services(data, single_service)

    assert booking_id in booking_repository.bookings
    assert len(booking_repository.service_lines) == 1


@pytest.mark.asyncio
async def test_customer_reads_and_cancels(booking_repository, booking_data, single_service, customer):
    writer = BookingWriter(booking_repository)
    service = BookingService(booking_repository)
    booking_id = await writer.create_booking_with_services(booking_data, single_service)
    booking = booking_repository.bookings[booking_id]

    assert [b.id for b in await service.list_bookings(customer.uid)] == [booking_id]
    assert [b.id for b in await service.get_upcoming(customer.uid, today=date(2025, 6, 30))] == [booking_id]
    assert await service.get_upcoming(customer.uid, today=date(2025, 7, 2)) == []
    assert (await service.get_booking_by_number(booking.booking_number.lower(), customer.uid)).id == booking_id

    with pytest.raises(BookingNotFound):
        await service.get_booking(booking_id, uuid.uuid4())

    cancelled = await service.cancel_booking(booking_id, customer.uid)
    assert cancelled.status == BookingStatus.cancelled
    assert cancelled.cancelled_at is not None
    assert await service.list_bookings(customer.uid, BookingStatus.pending) == []
    assert (await service.cancel_booking(booking_id, customer.uid)).status == BookingStatus.cancelled


@pytest.mark.asyncio
async def test_completed_booking_cannot_be_cancelled(booking_repository, booking_data, single_service, customer):
    booking_id = await BookingWriter(booking_repository).create_booking_with_services(
        booking_data.model_copy(update={"booking_time": time(9, 0)}), single_service
    )
    booking_repository.bookings[booking_id].status = BookingStatus.completed

    with pytest.raises(BookingNotCancellable):
        await BookingService(booking_repository).cancel_booking(booking_id, customer.uid)
