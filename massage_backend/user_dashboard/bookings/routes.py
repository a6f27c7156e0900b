from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from massage_backend.config import Config
from massage_backend.db.main import get_session
from massage_backend.db.models import Booking, BookingStatus, User
from massage_backend.auth.dependencies import get_current_user
from massage_backend.admin_dashboard.celery_tasks import queue_booking_received_email
from .repository import BookingRepository
from .schemas import BookingCreateRequest, BookingCreatedResponse, BookingResponse
from .service import BookingService, BookingWriter

user_booking_router = APIRouter()


def get_booking_repository(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingRepository:
    return BookingRepository(session, current_user_id=current_user.uid)


def _email_context(booking: Booking, user: User) -> dict:
    return {
        "customer_name": user.first_name or user.email,
        "booking_number": booking.booking_number,
        "booking_date": booking.booking_date.isoformat(),
        "booking_time": booking.booking_time.strftime("%H:%M"),
        "recipient_count": booking.recipient_count,
        "discount_amount": f"{booking.discount_amount:.2f}" if booking.discount_amount else None,
        "final_price": f"{booking.final_price:.2f}",
        "currency": Config.CURRENCY,
    }


@user_booking_router.post("/", status_code=status.HTTP_201_CREATED, response_model=BookingCreatedResponse)
async def create_booking(
    data: BookingCreateRequest,
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    booking_data = data.booking
    # customers always book for themselves; admins may book on behalf of someone
    if current_user.role != "admin" or booking_data.customer_id is None:
        booking_data = booking_data.model_copy(update={"customer_id": current_user.uid})

    writer = BookingWriter(repository)
    booking_id = await writer.create_booking_with_services(booking_data, data.services, data.addons)

    booking = await BookingService(repository).get_booking(booking_id)
    queue_booking_received_email(current_user.email, _email_context(booking, current_user))

    return BookingCreatedResponse(booking_id=booking.id, booking_number=booking.booking_number)


@user_booking_router.get("/", response_model=List[BookingResponse])
async def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    return await BookingService(repository).list_bookings(current_user.uid, status_filter)


@user_booking_router.get("/upcoming", response_model=List[BookingResponse])
async def list_upcoming_bookings(
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    return await BookingService(repository).get_upcoming(current_user.uid)


@user_booking_router.get("/number/{booking_number}", response_model=BookingResponse)
async def get_booking_by_number(
    booking_number: str,
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    return await BookingService(repository).get_booking_by_number(booking_number, current_user.uid)


@user_booking_router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: uuid.UUID,
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    return await BookingService(repository).get_booking(booking_id, current_user.uid)


@user_booking_router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: uuid.UUID,
    repository: BookingRepository = Depends(get_booking_repository),
    current_user: User = Depends(get_current_user),
):
    return await BookingService(repository).cancel_booking(booking_id, current_user.uid)
