from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    DATABASE_URL : str
    JWT_SECRET : str
    JWT_ALGORITHM : str = "HS256"
    REDIS_URL : str = "redis://localhost:6379/0"

    MAIL_USERNAME : str
    MAIL_PASSWORD : str
    MAIL_FROM : str
    MAIL_PORT : int = 587
    MAIL_SERVER : str
    MAIL_FROM_NAME : str
    MAIL_STARTTLS : bool = True
    MAIL_SSL_TLS : bool = False
    USE_CREDENTIALS : bool = True
    VALIDATE_CERTS : bool = True
    DOMAIN: Optional[str] = None
    FRONTEND_URL : str

    CURRENCY : str = "THB"
    PROMOTION_REPORT_CACHE_SECONDS : int = 300
    SEND_BOOKING_EMAILS : bool = True

    model_config = SettingsConfigDict(
        env_file = ".env",
        extra = "ignore"
    )


Config = Settings()

