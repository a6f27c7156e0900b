from sqlmodel import Relationship, SQLModel, Field, Column
import sqlalchemy.dialects.postgresql as pg
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import List, Optional
import uuid
from sqlalchemy import String, Numeric, Integer, Boolean, Float
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # naive timestamps are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


"""
___________________________________________________

1.  User Table
___________________________________________________

"""
class User(SQLModel, table = True):
    __tablename__ = 'users'
    uid : uuid.UUID = Field(
        sa_column = Column(
            pg.UUID,
            nullable = False,
            primary_key = True,
            default = uuid.uuid4
        )
    )
    email : str = Field(sa_column=Column(String, unique=True, index=True))
    first_name : str
    last_name : str
    phone : Optional[str] = None
    role : str = Field(sa_column=Column(
        pg.VARCHAR, nullable=False, server_default='customer'
    ))
    is_verified : bool = Field(default = False)
    created_at: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), default=utc_now))

    def __repr__(self):
        return f'<User {self.email}>'


"""
___________________________________________________

2.  Service Catalog Tables
___________________________________________________

"""
class ServiceCategory(str, Enum):
    massage = "massage"
    nail = "nail"
    spa = "spa"
    facial = "facial"


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name_en: str
    name_th: Optional[str] = None
    category: ServiceCategory = Field(default=ServiceCategory.massage)
    duration: int = Field(sa_column=Column(Integer, nullable=False))  # minutes
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    is_active: bool = Field(nullable=False, default=True)

    def __repr__(self):
        return f"<Service {self.name_en}>"


class ServiceAddon(SQLModel, table=True):
    __tablename__ = "service_addons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False)
    name_en: str
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    is_active: bool = Field(nullable=False, default=True)



"""
___________________________________________________

3.  Promotion Tables
___________________________________________________

"""
class PromotionStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    expired = "expired"
    draft = "draft"


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed_amount = "fixed_amount"


class PromotionScope(str, Enum):
    all = "all"
    specific_services = "specific_services"
    categories = "categories"


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    code: str = Field(sa_column=Column(String, unique=True, index=True, nullable=False))  # stored trimmed + upper-case
    name_en: str
    name_th: Optional[str] = None
    description_en: Optional[str] = None
    description_th: Optional[str] = None
    status: PromotionStatus = Field(default=PromotionStatus.draft)
    start_date: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=False))
    end_date: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=False))

    discount_type: DiscountType = Field(default=DiscountType.percentage)
    discount_value: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))  # 20 for 20% or 200 THB
    max_discount: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))  # percentage only

    min_order_amount: Optional[Decimal] = Field(default=None, sa_column=Column(Numeric(10, 2), nullable=True))
    usage_limit: Optional[int] = None
    usage_count: int = Field(default=0, nullable=False)
    usage_limit_per_user: Optional[int] = None

    applies_to: Optional[PromotionScope] = Field(default=PromotionScope.all)
    target_services: Optional[List[str]] = Field(default=None, sa_column=Column(pg.ARRAY(String), nullable=True))
    target_categories: Optional[List[str]] = Field(default=None, sa_column=Column(pg.ARRAY(String), nullable=True))

    created_at: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), default=utc_now))
    updated_at: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), default=utc_now, onupdate=utc_now))

    def __repr__(self):
        return f"<Promotion {self.code}>"


class PromotionUsage(SQLModel, table=True):
    __tablename__ = "promotion_usage"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    promotion_id: uuid.UUID = Field(foreign_key="promotions.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.uid", nullable=False, index=True)
    booking_id: Optional[uuid.UUID] = Field(default=None, foreign_key="bookings.id", nullable=True)
    discount_amount: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    used_at: datetime = Field(default_factory=utc_now, sa_type=pg.TIMESTAMP(timezone=True))


"""
___________________________________________________

4.  Booking Tables
___________________________________________________

"""
def generate_booking_number():
    return f"BK-{uuid.uuid4().hex[:6].upper()}"  # Example: BK-3F9D1A


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class ServiceFormat(str, Enum):
    single = "single"
    simultaneous = "simultaneous"
    sequential = "sequential"


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    booking_number: str = Field(default_factory=generate_booking_number, unique=True, index=True)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid", index=True)

    # primary service, kept on the row for older readers of bookings
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False)
    duration: int = Field(sa_column=Column(Integer, nullable=False))
    base_price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))

    booking_date: date
    booking_time: time
    address: Optional[str] = None
    latitude: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    longitude: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    customer_notes: Optional[str] = None
    hotel_room_number: Optional[str] = None

    service_format: ServiceFormat = Field(default=ServiceFormat.single)
    recipient_count: int = Field(default=1, ge=1)
    is_multi_service: bool = Field(sa_column=Column(Boolean, nullable=False, default=False))

    addons_total: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), default=0))
    discount_amount: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2), default=0))
    final_price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    promotion_id: Optional[uuid.UUID] = Field(default=None, foreign_key="promotions.id", nullable=True, ondelete="SET NULL")

    status: BookingStatus = Field(default=BookingStatus.pending)
    payment_status: PaymentStatus = Field(default=PaymentStatus.pending)
    created_at: datetime = Field(default_factory=utc_now, sa_type=pg.TIMESTAMP(timezone=True))
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=pg.TIMESTAMP(timezone=True))

    services: List["BookingServiceItem"] = Relationship(back_populates="booking", sa_relationship_kwargs={'lazy': 'selectin', 'cascade': 'all, delete-orphan', 'order_by': 'BookingServiceItem.sort_order'})
    addons: List["BookingAddonItem"] = Relationship(back_populates="booking", sa_relationship_kwargs={'lazy': 'selectin', 'cascade': 'all, delete-orphan'})

    def __repr__(self):
        return f"<Booking {self.booking_number}>"


class BookingServiceItem(SQLModel, table=True):
    __tablename__ = "booking_services"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    booking_id: uuid.UUID = Field(foreign_key="bookings.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False)
    duration: int
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    recipient_index: int = Field(default=0, ge=0)
    recipient_name: Optional[str] = None
    sort_order: int = Field(default=0)

    booking: Optional[Booking] = Relationship(back_populates="services")


class BookingAddonItem(SQLModel, table=True):
    __tablename__ = "booking_addons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    booking_id: uuid.UUID = Field(foreign_key="bookings.id", nullable=False, index=True)
    addon_id: uuid.UUID = Field(foreign_key="service_addons.id", nullable=False)
    quantity: int = Field(default=1, gt=0)
    price_per_unit: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    total_price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))

    booking: Optional[Booking] = Relationship(back_populates="addons")
