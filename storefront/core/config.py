"""Storefront Client Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Client settings loaded from environment"""

    # Application
    app_name: str = "Storefront"
    debug: bool = False

    # Store API
    api_base_url: str = "http://localhost:3000/api"
    auth_token: Optional[str] = None
    session_id: Optional[str] = None
    request_timeout: float = 20.0

    # Pricing (integer minor units)
    currency: str = "VND"
    shipping_fee: int = 35000
    point_value: int = 1000

    # Input coalescing
    quantity_debounce_seconds: float = 0.5
    loyalty_debounce_seconds: float = 0.5

    # Cart refresh
    cart_refetch_interval_seconds: float = 1.0
    cart_fetch_retry_seconds: float = 3.0

    class Config:
        env_prefix = "STOREFRONT_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_authenticated(self) -> bool:
        """Check if requests will carry a bearer token"""
        return bool(self.auth_token)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
