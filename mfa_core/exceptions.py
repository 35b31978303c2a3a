# (c) Copyright Datacraft, 2026
"""Errors raised by the MFA core.

Verification mismatches are not errors: they are reported as ``False``.
"""


class MFAError(Exception):
	"""Base class for MFA core errors."""


class InvalidEncoding(MFAError, ValueError):
	"""Raised when a base32 secret contains characters outside the alphabet."""


class StorageUnavailable(MFAError):
	"""Raised when the settings store cannot be read or written."""


class NotConfigured(MFAError):
	"""Raised when an operation needs an MFA method that is not enabled."""
