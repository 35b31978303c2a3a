import logging

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    db_url: str = "sqlite:///mfa.db"
    encryption_key: str = Field(
        default="",
        description="Base64-encoded 32 byte key for TOTP secret encryption",
    )

    # TOTP settings
    issuer: str = Field(default="ClearNav", description="TOTP issuer name")
    totp_digits: int = Field(default=6, ge=6, le=8)
    totp_period: int = Field(default=30, gt=0, description="Seconds per time step")
    totp_valid_window: int = Field(
        default=1, ge=0, description="Time steps accepted before/after the current one"
    )

    # Backup codes
    backup_codes_count: int = Field(default=10, gt=0, description="Number of backup codes to generate")

    # Trusted devices
    trusted_device_ttl_days: int = Field(default=30, gt=0)

    # Policy
    fail_closed: bool = Field(
        default=False,
        description="Require MFA for users without a settings record",
    )

    model_config = SettingsConfigDict(env_prefix='mfa_')


@lru_cache()
def get_settings():
    return Settings()
