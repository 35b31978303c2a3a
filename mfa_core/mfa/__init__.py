# (c) Copyright Datacraft, 2026
"""Multi-Factor Authentication module."""

from .totp import TOTPEngine, TOTPSetup, compute_code
from .backup import BackupCodeManager, generate_backup_code
from .devices import TrustedDeviceRegistry, describe_device
from .policy import MFARequirement, is_required
from .service import MFAService

__all__ = [
	"TOTPEngine",
	"TOTPSetup",
	"compute_code",
	"BackupCodeManager",
	"generate_backup_code",
	"TrustedDeviceRegistry",
	"describe_device",
	"MFARequirement",
	"is_required",
	"MFAService",
]
