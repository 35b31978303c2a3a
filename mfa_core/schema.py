from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MFAMethod(str, Enum):
    """Supported second factors."""
    TOTP = "totp"
    SMS = "sms"
    EMAIL = "email"


class MFAConfig(BaseModel):
    user_id: str
    tenant_id: str
    method: MFAMethod
    phone_number: str | None = None
    recovery_email: str | None = None


class TrustedDevice(BaseModel):
    fingerprint: str
    name: str
    added_at: datetime
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now


class MFASettings(BaseModel):
    user_id: str
    tenant_id: str | None = None
    mfa_enabled: bool = False
    mfa_method: MFAMethod | None = None
    totp_secret: str | None = None  # encrypted
    totp_verified: bool = False
    totp_verified_at: datetime | None = None
    phone_number: str | None = None
    recovery_email: str | None = None
    backup_codes: list[str] = []  # digests
    backup_codes_used: int = 0
    trusted_devices: list[TrustedDevice] = []
    enforce_mfa: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DeviceSignals(BaseModel):
    """Client-observable attributes used to fingerprint a device."""
    user_agent: str = ""
    language: str = ""
    hardware_concurrency: int | None = None
    max_touch_points: int | None = None
    screen_width: int | None = None
    screen_height: int | None = None
    color_depth: int | None = None
    timezone_offset: int | None = None
    session_storage: bool = False
    local_storage: bool = False
    platform: str = ""
    canvas: str | None = Field(
        default=None,
        description="Canvas rendering sample, e.g. a data URL",
    )


class DeviceInfo(BaseModel):
    browser: str = "Unknown"
    os: str = "Unknown"
    device_type: str = "Desktop"
