"""
Application configuration management.

Uses pydantic-settings for type-safe environment variable parsing.
The metastore itself only consumes a Configuration Descriptor; settings
are one convenient way of producing one (see Settings.to_descriptor).
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from jobstore.descriptor import (
    AUTO_CONNECT_KEY,
    AUTO_CONNECT_URL_KEY,
    META_CONNECT_KEY,
    META_DRIVER_KEY,
    META_PASSWORD_KEY,
    META_SCHEMA_KEY,
    META_USERNAME_KEY,
)


class Settings(BaseSettings):
    """
    Application settings with validation and type coercion.
    
    Values are loaded from environment variables or .env file.
    All fields have sensible defaults for local development.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Shared metastore (explicit connect string wins over auto-connect)
    metastore_connect: Optional[str] = None
    metastore_username: str = ""
    metastore_password: str = ""
    metastore_driver: str = ""
    metastore_schema: Optional[str] = None
    
    # Private per-user metastore
    metastore_autoconnect: bool = True
    metastore_autoconnect_url: Optional[str] = None
    
    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    
    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    
    @property
    def is_development(self) -> bool:
        return self.environment == "development"
    
    def to_descriptor(self) -> dict[str, str]:
        """
        Build a Configuration Descriptor from these settings.
        
        Returns an empty descriptor when neither a connect string nor
        auto-connect is configured; the storage factory rejects it.
        """
        if self.metastore_connect:
            descriptor = {
                META_CONNECT_KEY: self.metastore_connect,
                META_USERNAME_KEY: self.metastore_username,
                META_PASSWORD_KEY: self.metastore_password,
                META_DRIVER_KEY: self.metastore_driver,
            }
            if self.metastore_schema:
                descriptor[META_SCHEMA_KEY] = self.metastore_schema
            return descriptor
        
        if self.metastore_autoconnect:
            descriptor = {AUTO_CONNECT_KEY: "true"}
            if self.metastore_autoconnect_url:
                descriptor[AUTO_CONNECT_URL_KEY] = self.metastore_autoconnect_url
            return descriptor
        
        return {}


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings singleton.
    
    Use this function to get settings instance throughout the application.
    The @lru_cache ensures we only parse environment once.
    """
    return Settings()


# Convenience export for direct import
settings = get_settings()
