from typing import Any, Callable
from fastapi import FastAPI, status
from fastapi.requests import Request
from fastapi.responses import JSONResponse


class MassageException(Exception):
    """This is the base class for all booking backend errors"""
    pass


class InvalidToken(MassageException):
    """User has been provided an invalid or expired token"""
    pass


class AccessTokenRequired(MassageException):
    """User has been provided a refresh token when an access token is needed"""
    pass


class InsufficientPermission(MassageException):
    """User does not have the role required by the route"""
    pass


class AccountNotVerified(MassageException):
    """Account not verified yet."""
    pass


class PromotionNotFound(MassageException):
    """Promotion not found."""
    pass


class PromotionAlreadyExists(MassageException):
    """A promotion with the same canonical code already exists."""
    pass


class PromotionDataError(MassageException):
    """A stored promotion cannot produce a valid discount (e.g. negative value)."""
    pass


class BookingNotFound(MassageException):
    """Booking not found."""
    pass


class BookingNotCancellable(MassageException):
    """Booking is already in progress or completed."""
    pass


class InvalidBookingRequest(MassageException):
    """Booking request cannot be written (e.g. it has no service lines)."""
    pass


class BookingWriteError(MassageException):
    """Booking, service line or add-on insert failed; nothing was kept."""
    pass


def create_exception_handler(status_code: int, initial_detail: Any) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exc: MassageException):
        return JSONResponse(
            content=initial_detail,
            status_code=status_code
        )

    return exception_handler



def register_all_errors(app: FastAPI):
    # Invalid Token
    app.add_exception_handler(
        InvalidToken,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "you provided an invalid or expired token",
                "error_code": "invalid_token"
            }
        )
    )

    # Access Token Required
    app.add_exception_handler(
        AccessTokenRequired,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "Access token is required",
                "error_code": "access_token_required"
            }
        )
    )

    # Insufficient Permission
    app.add_exception_handler(
        InsufficientPermission,
        create_exception_handler(
            status_code=status.HTTP_403_FORBIDDEN,
            initial_detail={
                "message": "You do not have sufficient permission",
                "error_code": "insufficient_permission"
            }
        )
    )

    # Account Not Verified
    app.add_exception_handler(
        AccountNotVerified,
        create_exception_handler(
            status_code=status.HTTP_403_FORBIDDEN,
            initial_detail={
                "message": "Account is not verified",
                "error_code": "account_not_verified",
                "resolution": "Please verify your account before booking"
            }
        )
    )

    # Promotion Not Found
    app.add_exception_handler(
        PromotionNotFound,
        create_exception_handler(
            status_code=status.HTTP_404_NOT_FOUND,
            initial_detail={
                "message": "Promotion not found",
                "error_code": "promotion_not_found"
            }
        )
    )

    # Promotion Already Exists
    app.add_exception_handler(
        PromotionAlreadyExists,
        create_exception_handler(
            status_code=status.HTTP_409_CONFLICT,
            initial_detail={
                "message": "A promotion with this code already exists",
                "error_code": "promotion_exists",
                "resolution": "Choose a different promotion code"
            }
        )
    )

    # Promotion Data Error
    app.add_exception_handler(
        PromotionDataError,
        create_exception_handler(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            initial_detail={
                "message": "This promotion is misconfigured and cannot be applied",
                "error_code": "promotion_misconfigured",
                "resolution": "Please contact support"
            }
        )
    )

    # Booking Not Found
    app.add_exception_handler(
        BookingNotFound,
        create_exception_handler(
            status_code=status.HTTP_404_NOT_FOUND,
            initial_detail={
                "message": "Booking not found",
                "error_code": "booking_not_found"
            }
        )
    )

    # Booking Not Cancellable
    app.add_exception_handler(
        BookingNotCancellable,
        create_exception_handler(
            status_code=status.HTTP_400_BAD_REQUEST,
            initial_detail={
                "message": "This booking can no longer be cancelled",
                "error_code": "booking_not_cancellable"
            }
        )
    )

    # Invalid Booking Request
    app.add_exception_handler(
        InvalidBookingRequest,
        create_exception_handler(
            status_code=status.HTTP_400_BAD_REQUEST,
            initial_detail={
                "message": "A booking needs at least one service",
                "error_code": "invalid_booking_request"
            }
        )
    )

    # Booking Write Error
    app.add_exception_handler(
        BookingWriteError,
        create_exception_handler(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            initial_detail={
                "message": "Could not complete booking",
                "error_code": "booking_failed",
                "resolution": "Please try again later"
            }
        )
    )

    @app.exception_handler(500)
    async def internal_server_error_handler(request, exc):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message": "Oops, Something went wrong. Please try again later",
                "error_code": "server_error"
            }
        )

    @app.exception_handler(404)
    async def not_found_error_handler(request, exc):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "message": "Resource not found",
                "error_code": "not_found",
                "resolution": "Please check the URL"
            }
        )
