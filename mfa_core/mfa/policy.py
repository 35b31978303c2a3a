# (c) Copyright Datacraft, 2026
"""Decides whether a user must present a second factor."""

from dataclasses import dataclass

from mfa_core.schema import MFAMethod, MFASettings


@dataclass(frozen=True)
class MFARequirement:
	required: bool
	method: MFAMethod | None = None


def is_live_factor(settings: MFASettings) -> bool:
	"""A TOTP factor counts only after it has been activated."""
	if settings.mfa_method is None:
		return False
	if settings.mfa_method == MFAMethod.TOTP:
		return settings.totp_verified
	return True


def is_required(store, user_id: str, fail_closed: bool = False) -> MFARequirement:
	"""Check if MFA is enabled and enforced for a user.

	A missing settings record means MFA is not required, unless
	``fail_closed`` is set. Store errors propagate as StorageUnavailable.
	"""
	settings = store.get(user_id)
	if settings is None:
		return MFARequirement(required=fail_closed)

	required = settings.mfa_enabled and settings.enforce_mfa and is_live_factor(settings)
	return MFARequirement(required=required, method=settings.mfa_method)
