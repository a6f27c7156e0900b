from fastapi import FastAPI, Depends

from massage_backend.auth.dependencies import admin_role_checker

from massage_backend.admin_dashboard.promotions.routes import promotion_router

from massage_backend.user_dashboard.promotions.routes import user_promotion_router
from massage_backend.user_dashboard.bookings.routes import user_booking_router

from .errors import register_all_errors
from .admin_dashboard.middleware import register_middleware

version = "v1"

app = FastAPI(
    title = "Massage Booking",
    description = "A REST API for booking home massage, spa and nail services",
    version = version,
)


register_all_errors(app)
register_middleware(app)


app.include_router(promotion_router, prefix=f"/admin/promotions", tags=["admin promotions"], dependencies=[Depends(admin_role_checker)])

app.include_router(user_promotion_router, prefix=f"/promotions", tags = ['user promotions'])
app.include_router(user_booking_router, prefix=f"/bookings", tags = ['user bookings'])
