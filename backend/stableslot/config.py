"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of stableslot/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./stableslot.db"
    # Full read-validate-write attempts per booking request (1 = no retry on conflict)
    booking_transaction_attempts: int = 3
    # Backoff multiplier between conflicting attempts (seconds)
    booking_retry_wait_seconds: float = 0.05
    # Extra CORS origins, comma-separated (e.g. https://stable.example.com)
    cors_origins: str = ""

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("booking_transaction_attempts", mode="after")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        if v < 1:
            raise ValueError("BOOKING_TRANSACTION_ATTEMPTS must be >= 1")
        return v

    @field_validator("database_url", "cors_origins", mode="after")
    @classmethod
    def strip(cls, v: str) -> str:
        return (v or "").strip()


settings = Settings()
