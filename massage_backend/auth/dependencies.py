# Authentication and Authorization Dependencies

from fastapi import Request, Depends
from fastapi.security import HTTPBearer
import logging

from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List, Any

from massage_backend.db.redis import token_in_blocklist
from massage_backend.db.main import get_session
from massage_backend.db.models import User

from .service import UserService
from .utils import decode_token
from massage_backend.errors import (
    InvalidToken,
    AccessTokenRequired,
    InsufficientPermission,
    AccountNotVerified
)

# Service for user-related operations
user_service = UserService()


class TokenBearer(HTTPBearer):
    """Base class for JWT token validation.
    Extends FastAPI's HTTPBearer to add custom token validation logic.
    """
    def __init__(self, auto_error=True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request) -> dict:
        """Validate the Bearer token from the Authorization header.

        Args:
            request (Request): The incoming HTTP request

        Returns:
            dict: Decoded token data if valid

        Raises:
            InvalidToken: If token is invalid or blacklisted
        """
        creds = await super().__call__(request)
        token = creds.credentials

        token_data = decode_token(token)
        if not token_data:
            raise InvalidToken()

        # Check if token has been blacklisted (e.g., after logout)
        if await token_in_blocklist(token_data.get('jti')):
            raise InvalidToken()

        self.verify_token_data(token_data)

        return token_data

    def verify_token_data(self, token_data):
        """Abstract method for token-specific validation logic."""
        raise NotImplementedError("Please Override this method in child classes")


class AccessTokenBearer(TokenBearer):
    def verify_token_data(self, token_data: dict) -> None:
        if token_data and token_data.get("refresh"):
            raise AccessTokenRequired()


async def get_current_user(
    token_details: dict = Depends(AccessTokenBearer()),
    session: AsyncSession = Depends(get_session)
) -> User:
    try:
        user_email = token_details['user']['email']
    except KeyError:
        logging.error("Access token without user email")
        raise InvalidToken()

    user = await user_service.get_user_by_email(user_email, session)
    if user is None:
        raise InvalidToken()

    return user


class RoleChecker:
    """Role-Based Access Control (RBAC) implementation.
    Used as a dependency to protect routes based on user roles.
    """
    def __init__(self, allowed_roles: List[str]) -> None:
        self.allowed_roles = allowed_roles

    async def __call__(self, current_user: User = Depends(get_current_user)) -> Any:
        """Check if the current user has sufficient role-based permissions.

        Raises:
            AccountNotVerified: If user's email is not verified
            InsufficientPermission: If user's role is not in allowed_roles
        """
        if not current_user.is_verified:
            raise AccountNotVerified()

        if current_user.role in self.allowed_roles:
            return True

        raise InsufficientPermission()


# Pre-configured checker for admin-only routes
admin_role_checker = RoleChecker(allowed_roles=["admin"])
