from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from massage_backend.db.models import BookingStatus, PaymentStatus, ServiceFormat


class BookingCreate(BaseModel):
    customer_id: Optional[uuid.UUID] = None
    booking_date: date
    booking_time: time
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    customer_notes: Optional[str] = None
    hotel_room_number: Optional[str] = None
    service_format: ServiceFormat = ServiceFormat.single
    recipient_count: int = Field(default=1, ge=1)
    final_price: Decimal = Field(ge=0)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    promotion_id: Optional[uuid.UUID] = None


class BookingServiceInput(BaseModel):
    service_id: uuid.UUID
    duration: int = Field(gt=0)  # minutes
    price: Decimal = Field(ge=0)
    recipient_index: int = Field(default=0, ge=0)  # 0 is the payer
    recipient_name: Optional[str] = None
    sort_order: Optional[int] = None


class BookingAddonInput(BaseModel):
    service_addon_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)
    price_per_unit: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)


class BookingCreateRequest(BaseModel):
    booking: BookingCreate
    services: List[BookingServiceInput] = Field(min_length=1)
    addons: List[BookingAddonInput] = []


class BookingCreatedResponse(BaseModel):
    booking_id: uuid.UUID
    booking_number: str


class BookingServiceItemResponse(BaseModel):
    id: uuid.UUID
    service_id: uuid.UUID
    duration: int
    price: Decimal
    recipient_index: int
    recipient_name: Optional[str] = None
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('price')
    def _serialize_price(self, value: Decimal) -> float:
        return float(round(Decimal(str(value)), 2))


class BookingAddonItemResponse(BaseModel):
    id: uuid.UUID
    addon_id: uuid.UUID
    quantity: int
    price_per_unit: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('price_per_unit', 'total_price')
    def _serialize_prices(self, value: Decimal) -> float:
        return float(round(Decimal(str(value)), 2))


class BookingResponse(BaseModel):
    id: uuid.UUID
    booking_number: str
    customer_id: Optional[uuid.UUID] = None
    service_id: uuid.UUID
    duration: int
    booking_date: date
    booking_time: time
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    customer_notes: Optional[str] = None
    hotel_room_number: Optional[str] = None
    service_format: ServiceFormat
    recipient_count: int
    is_multi_service: bool
    base_price: Decimal
    addons_total: Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    final_price: Decimal
    promotion_id: Optional[uuid.UUID] = None
    status: BookingStatus
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    services: List[BookingServiceItemResponse] = []
    addons: List[BookingAddonItemResponse] = []

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('base_price', 'addons_total', 'discount_amount', 'final_price')
    def _serialize_prices(self, value: Decimal) -> float:
        return float(round(Decimal(str(value or 0)), 2))
