# (c) Copyright Datacraft, 2026
"""Persistence for MFA settings."""
from .orm import MFASettingsRecord, BackupCodeRecord, TrustedDeviceRecord
from .base import Base
from .store import MFAStore, InMemoryMFAStore, SqlMFAStore

__all__ = [
	'Base',
	'MFASettingsRecord',
	'BackupCodeRecord',
	'TrustedDeviceRecord',
	'MFAStore',
	'InMemoryMFAStore',
	'SqlMFAStore',
]
