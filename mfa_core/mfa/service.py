# (c) Copyright Datacraft, 2026
"""MFA service for managing multi-factor authentication."""

import hmac
import logging
from datetime import datetime, timezone

from mfa_core.config import Settings
from mfa_core.exceptions import NotConfigured
from mfa_core.schema import MFAConfig, MFAMethod, MFASettings

from . import base32, policy
from .backup import BackupCodeManager
from .devices import TrustedDeviceRegistry
from .policy import MFARequirement
from .totp import QRRenderer, TOTPEngine, TOTPSetup

logger = logging.getLogger(__name__)


class MFAService:
	"""Service for managing multi-factor authentication.

	All collaborators are passed in; the service itself keeps no state
	between calls.

	Args:
		store: Settings store (see ``mfa_core.db.store.MFAStore``)
		cipher: Object with ``encrypt``, ``decrypt`` and ``hash``
		settings: Configuration; defaults to ``Settings()``
	"""

	def __init__(self, store, cipher, settings: Settings | None = None):
		self.settings = settings or Settings()
		self.store = store
		self.cipher = cipher
		self.totp = TOTPEngine.from_settings(self.settings)
		self.backup = BackupCodeManager(cipher, code_count=self.settings.backup_codes_count)
		self.devices = TrustedDeviceRegistry(
			store, cipher, ttl_days=self.settings.trusted_device_ttl_days
		)

	def generate_totp_secret(
		self,
		account_label: str,
		issuer: str | None = None,
		qr_renderer: QRRenderer | None = None,
	) -> TOTPSetup:
		"""Create a new secret for display. Nothing is stored yet."""
		return self.totp.generate_secret(account_label, issuer, qr_renderer)

	def enable(self, config: MFAConfig, totp_secret: str | None = None) -> MFASettings:
		"""Enable an MFA method, replacing any previously enabled one.

		TOTP stays inactive until ``verify_and_activate`` succeeds.
		"""
		fields = {
			"tenant_id": config.tenant_id,
			"mfa_enabled": True,
			"mfa_method": config.method,
			"phone_number": config.phone_number,
			"recovery_email": config.recovery_email,
			"totp_verified": False,
			"totp_verified_at": None,
			"totp_secret": None,
		}
		if config.method == MFAMethod.TOTP:
			if not totp_secret:
				raise NotConfigured("A TOTP secret is required to enable TOTP")
			fields["totp_secret"] = self.cipher.encrypt(totp_secret)

		settings = self.store.upsert(config.user_id, **fields)

		logger.info(f"MFA method {config.method.value} enabled for user {config.user_id}")

		return settings

	def verify_and_activate(
		self,
		user_id: str,
		secret: str,
		code: str,
		now: float | datetime | None = None,
	) -> bool:
		"""Verify the first code from the authenticator app and activate TOTP.

		``secret`` must be the one stored by ``enable``; the code is checked
		against the stored copy.
		"""
		settings = self.store.get(user_id)
		if (
			settings is None
			or settings.mfa_method != MFAMethod.TOTP
			or not settings.totp_secret
		):
			raise NotConfigured("TOTP is not the enabled MFA method")

		stored = self.cipher.decrypt(settings.totp_secret)
		submitted = base32.normalize(secret).upper()
		if not hmac.compare_digest(submitted.encode(), stored.upper().encode()):
			logger.warning(f"TOTP activation for user {user_id} used a secret that was not enrolled")
			return False

		if not self.totp.verify(stored, code, now):
			return False

		self.store.upsert(
			user_id,
			totp_verified=True,
			totp_verified_at=datetime.now(timezone.utc),
		)

		logger.info(f"TOTP activated for user {user_id}")

		return True

	def verify_totp(
		self,
		user_id: str,
		code: str,
		now: float | datetime | None = None,
	) -> bool:
		"""Verify a TOTP code during login."""
		settings = self._require_settings(user_id)
		if not (
			settings.mfa_method == MFAMethod.TOTP
			and settings.totp_verified
			and settings.totp_secret
		):
			raise NotConfigured("TOTP is not active for this user")

		secret = self.cipher.decrypt(settings.totp_secret)
		return self.totp.verify(secret, code, now)

	def verify_second_factor(
		self,
		user_id: str,
		code: str,
		now: float | datetime | None = None,
	) -> bool:
		"""Accept either a live TOTP code or an unused backup code."""
		settings = self._require_settings(user_id)

		if (
			settings.mfa_enabled
			and policy.is_live_factor(settings)
			and settings.mfa_method == MFAMethod.TOTP
		):
			if self.verify_totp(user_id, code, now):
				return True

		return self.verify_backup_code(user_id, code)

	def generate_backup_codes(self, user_id: str) -> list[str]:
		"""Issue a new batch of backup codes, discarding the previous one.

		Returns:
			Plain text codes; they cannot be recovered later
		"""
		plain_codes, hashed_codes = self.backup.generate()
		self.store.replace_backup_codes(user_id, hashed_codes)

		logger.info(f"Backup codes regenerated for user {user_id}")

		return plain_codes

	def verify_backup_code(self, user_id: str, code: str) -> bool:
		return self.backup.verify_and_consume(self.store, user_id, code)

	def remaining_backup_codes(self, user_id: str) -> int:
		settings = self.store.get(user_id)
		if settings is None:
			return 0
		return len(settings.backup_codes)

	def disable(self, user_id: str) -> None:
		"""Disable MFA, dropping the TOTP secret and all backup codes."""
		self.store.disable(user_id)

		logger.info(f"MFA disabled for user {user_id}")

	def set_enforcement(self, user_id: str, enforce: bool) -> MFASettings:
		self._require_settings(user_id)
		settings = self.store.upsert(user_id, enforce_mfa=enforce)

		logger.info(f"MFA enforcement set to {enforce} for user {user_id}")

		return settings

	def get_settings(self, user_id: str) -> MFASettings | None:
		return self.store.get(user_id)

	def is_required(self, user_id: str) -> MFARequirement:
		return policy.is_required(self.store, user_id, fail_closed=self.settings.fail_closed)

	def _require_settings(self, user_id: str) -> MFASettings:
		settings = self.store.get(user_id)
		if settings is None:
			raise NotConfigured("MFA is not configured for this user")
		return settings
