"""
Configuration for the session/token lifecycle.

All settings are loaded from ``SESSION_``-prefixed environment variables
(or a .env file) and validated by pydantic-settings at startup.
"""
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SessionSettings(BaseSettings):
    """Settings for token issuance, session expiry and heartbeat timing."""
    
    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Token Configuration
    token_secret_key: SecretStr = Field(
        default="change-me-in-production-use-strong-secret-key",
        description="HMAC key used to sign access and refresh tokens"
    )
    token_algorithm: str = Field(default="HS256")
    access_token_ttl: str = Field(default="30m", description="Access token lifetime, <n><s|m|h|d>")
    refresh_token_ttl: str = Field(default="7d", description="Refresh token lifetime, <n><s|m|h|d>")
    
    # Session Configuration
    idle_timeout_days: int = Field(default=30, ge=1)
    sessions_collection: str = Field(default="userSessions")
    users_collection: str = Field(default="users")
    
    # Heartbeat Configuration
    activity_interval_seconds: float = Field(default=300, gt=0)  # 5 minutes
    token_refresh_interval_seconds: float = Field(default=1500, gt=0)  # 25 minutes
    
    # Local Storage Configuration
    device_id_key: str = Field(default="device_id")
    access_token_key: str = Field(default="access_token")
    refresh_token_key: str = Field(default="refresh_token")
    token_timestamp_key: str = Field(default="token_timestamp")
    local_storage_path: Optional[str] = Field(default=None)
    
    # Remote Store Configuration
    redis_url: Optional[str] = Field(default=None)
    redis_key_prefix: str = Field(default="mentor_session")
    
    @field_validator("token_algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if not value.upper().startswith("HS"):
            raise ValueError("Only HMAC (HS*) token algorithms are supported")
        return value.upper()
    
    @property
    def idle_timeout(self) -> timedelta:
        return timedelta(days=self.idle_timeout_days)
    
    @property
    def token_storage_keys(self) -> tuple:
        return (self.access_token_key, self.refresh_token_key, self.token_timestamp_key)


@lru_cache()
def get_settings() -> SessionSettings:
    """Get cached settings instance."""
    return SessionSettings()
