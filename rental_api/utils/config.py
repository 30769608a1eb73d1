"""
Configuration management using pydantic-settings

Loads configuration from environment variables and .env file
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database Configuration
    DB_HOST: str = Field(default="localhost", description="Database host")
    DB_PORT: int = Field(default=5432, description="Database port")
    DB_NAME: str = Field(default="rental_db", description="Database name")
    DB_USER: str = Field(default="rental_user", description="Database user")
    DB_PASSWORD: str = Field(default="rental_password", description="Database password")
    DB_POOL_MIN: int = Field(default=1, description="Minimum pooled connections")
    DB_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")

    # Application Settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Order Pricing
    ORDER_NUMBER_PREFIX: str = Field(default="BB", description="Prefix for generated order numbers")
    DEFAULT_DELIVERY_FEE: float = Field(default=20.0, description="Delivery fee applied when none is given")
    PROCESSING_FEE_PERCENTAGE: float = Field(
        default=3.0,
        description="Processing fee as a whole-number percentage of the subtotal"
    )
    DEFAULT_DEPOSIT_AMOUNT: float = Field(default=0.0, description="Deposit applied when none is given")

    # Task Scheduling
    BUSINESS_HOURS_START: int = Field(default=8, description="First business hour (24h clock)")
    BUSINESS_HOURS_END: int = Field(default=18, description="Hour at which business hours end (24h clock)")

    # Task Templates
    MOST_USED_TEMPLATES_LIMIT: int = Field(
        default=10,
        description="Number of templates listed in usage statistics"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings
