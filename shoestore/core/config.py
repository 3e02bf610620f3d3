"""Shoe Store Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Shoe Store API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:5173"]
    frontend_url: str = "http://localhost:5173"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "shoestore"

    # Tokens
    access_token_secret: str = "change-me-access"
    access_token_expiry_minutes: int = 15
    refresh_token_secret: str = "change-me-refresh"
    refresh_token_expiry_days: int = 10
    reset_token_expiry_minutes: int = 15
    admin_registration_key: Optional[str] = None

    # Checkout
    free_shipping_threshold: float = 5000.0
    flat_shipping_fee: float = 200.0
    delivery_estimate_days: int = 7
    default_country: str = "Pakistan"

    # Order administration
    strict_status_transitions: bool = False
    stats_recent_window_days: int = 30

    # SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from_name: str = "Shoe Store"
    mail_from_address: Optional[str] = None

    # Cloudinary
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    asset_folder: str = "shoes"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def assets_configured(self) -> bool:
        """Check if asset host credentials are configured"""
        return all([
            self.cloudinary_cloud_name,
            self.cloudinary_api_key,
            self.cloudinary_api_secret,
        ])

    @property
    def mail_configured(self) -> bool:
        """Check if an SMTP relay is configured"""
        return bool(self.smtp_host)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
