"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class BankingConfig(BaseSettings):
    """Demo bank configuration"""

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
        "http://localhost:8080",
    ]

    # Security configuration
    jwt_secret: str = "change-me-in-production-demo-bank-secret"
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"
    scrypt_n: int = 16384
    scrypt_r: int = 8
    scrypt_p: int = 1

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Business rules configuration
    starting_balance: str = "1000.00"
    favorite_ceiling: str = "5000.00"  # Transfers above this need a favorite recipient
    default_transfer_description: str = "Transfer"

    class Config:
        env_prefix = "BANKING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BankingConfig()


def get_config() -> BankingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankingConfig:
    """Reload configuration from environment"""
    global config
    config = BankingConfig()
    return config
