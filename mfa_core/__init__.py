# (c) Copyright Datacraft, 2026
"""TOTP, backup codes and trusted devices for multi-factor authentication."""

from .exceptions import InvalidEncoding, MFAError, NotConfigured, StorageUnavailable
from .mfa import MFAService

__all__ = [
	"MFAService",
	"MFAError",
	"InvalidEncoding",
	"NotConfigured",
	"StorageUnavailable",
]
