# JWT Utilities
# Tokens are issued by the customer/admin apps; this service only reads them.

from massage_backend.errors import InvalidToken
from massage_backend.config import Config
import jwt  # JSON Web Token implementation
import logging


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Args:
        token (str): The JWT token to decode

    Returns:
        dict: Decoded token payload if valid, None if empty

    Raises:
        InvalidToken: If the token is expired, tampered with or unreadable
    """
    try:
        if not token:
            return None

        token_data = jwt.decode(
            jwt = token,
            key = Config.JWT_SECRET,
            algorithms = [Config.JWT_ALGORITHM],
        )

        return token_data

    except jwt.ExpiredSignatureError as e:
        logging.error(f"Token expired: {str(e)}")
        raise InvalidToken("Token has expired")
    except jwt.PyJWTError as e:
        logging.error(f"JWT error: {str(e)}")
        raise InvalidToken("Token is invalid")
