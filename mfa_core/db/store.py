# (c) Copyright Datacraft, 2026
"""Settings stores backing the MFA core.

Backup codes and trusted devices are stored per record so consuming a
code or revoking a device never rewrites the whole collection.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mfa_core.exceptions import NotConfigured, StorageUnavailable
from mfa_core.schema import MFAMethod, MFASettings, TrustedDevice

from .orm import BackupCodeRecord, MFASettingsRecord, TrustedDeviceRecord, utcnow

logger = logging.getLogger(__name__)

# Fields owned by dedicated store operations
_MANAGED_FIELDS = {"user_id", "backup_codes", "trusted_devices", "created_at", "updated_at"}

# Settings fields reset by disable(); backup codes are dropped alongside
_DISABLED = {
	"mfa_enabled": False,
	"totp_secret": None,
	"totp_verified": False,
	"totp_verified_at": None,
	"backup_codes_used": 0,
}


class MFAStore(Protocol):
	"""Interface the MFA core expects from its settings store."""

	def get(self, user_id: str) -> MFASettings | None: ...

	def upsert(self, user_id: str, **fields: Any) -> MFASettings: ...

	def replace_backup_codes(self, user_id: str, digests: list[str]) -> None: ...

	def consume_backup_code(self, user_id: str, digest: str) -> bool: ...

	def disable(self, user_id: str) -> MFASettings: ...

	def add_device(self, user_id: str, device: TrustedDevice) -> None: ...

	def list_devices(self, user_id: str) -> list[TrustedDevice]: ...

	def remove_devices(self, user_id: str, fingerprint: str) -> int: ...

	def purge_expired_devices(self, user_id: str, now: datetime) -> int: ...


def _check_fields(fields: dict[str, Any]) -> None:
	managed = _MANAGED_FIELDS.intersection(fields)
	if managed:
		raise ValueError(f"Fields cannot be set through upsert: {sorted(managed)}")


def _aware(value: datetime | None) -> datetime | None:
	"""SQLite drops tzinfo; stored values are always UTC."""
	if value is not None and value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


class InMemoryMFAStore:
	"""Process-local store, guarded by a single lock."""

	def __init__(self):
		self._lock = threading.Lock()
		self._settings: dict[str, MFASettings] = {}
		self._devices: dict[str, list[TrustedDevice]] = {}

	def get(self, user_id: str) -> MFASettings | None:
		with self._lock:
			settings = self._settings.get(user_id)
			if settings is None:
				return None
			return settings.model_copy(
				update={"trusted_devices": list(self._devices.get(user_id, []))},
				deep=True,
			)

	def upsert(self, user_id: str, **fields: Any) -> MFASettings:
		_check_fields(fields)
		now = datetime.now(timezone.utc)
		with self._lock:
			current = self._settings.get(user_id)
			if current is None:
				current = MFASettings(user_id=user_id, created_at=now)
			data = current.model_dump()
			data.update(fields)
			data["updated_at"] = now
			settings = MFASettings.model_validate(data)
			self._settings[user_id] = settings
			return settings.model_copy(deep=True)

	def replace_backup_codes(self, user_id: str, digests: list[str]) -> None:
		with self._lock:
			settings = self._settings.get(user_id)
			if settings is None:
				raise NotConfigured("MFA is not configured for this user")
			self._settings[user_id] = settings.model_copy(update={
				"backup_codes": list(digests),
				"backup_codes_used": 0,
				"updated_at": datetime.now(timezone.utc),
			})

	def consume_backup_code(self, user_id: str, digest: str) -> bool:
		with self._lock:
			settings = self._settings.get(user_id)
			if settings is None or digest not in settings.backup_codes:
				return False
			remaining = list(settings.backup_codes)
			remaining.remove(digest)
			self._settings[user_id] = settings.model_copy(update={
				"backup_codes": remaining,
				"backup_codes_used": settings.backup_codes_used + 1,
				"updated_at": datetime.now(timezone.utc),
			})
			return True

	def disable(self, user_id: str) -> MFASettings:
		with self._lock:
			settings = self._settings.get(user_id)
			if settings is None:
				raise NotConfigured("MFA is not configured for this user")
			settings = settings.model_copy(update=dict(
				_DISABLED, backup_codes=[], updated_at=datetime.now(timezone.utc)
			))
			self._settings[user_id] = settings
			return settings.model_copy(deep=True)

	def add_device(self, user_id: str, device: TrustedDevice) -> None:
		with self._lock:
			self._devices.setdefault(user_id, []).append(device)

	def list_devices(self, user_id: str) -> list[TrustedDevice]:
		with self._lock:
			return list(self._devices.get(user_id, []))

	def remove_devices(self, user_id: str, fingerprint: str) -> int:
		with self._lock:
			devices = self._devices.get(user_id, [])
			kept = [d for d in devices if d.fingerprint != fingerprint]
			self._devices[user_id] = kept
			return len(devices) - len(kept)

	def purge_expired_devices(self, user_id: str, now: datetime) -> int:
		with self._lock:
			devices = self._devices.get(user_id, [])
			kept = [d for d in devices if d.is_active(now)]
			self._devices[user_id] = kept
			return len(devices) - len(kept)


class SqlMFAStore:
	"""SQLAlchemy-backed store; every call runs in its own transaction."""

	def __init__(self, session_factory: sessionmaker):
		self._session_factory = session_factory

	@contextmanager
	def _transaction(self) -> Iterator[Session]:
		try:
			with self._session_factory() as session, session.begin():
				yield session
		except SQLAlchemyError as exc:
			logger.error(f"MFA settings store failure: {exc.__class__.__name__}")
			raise StorageUnavailable("MFA settings store unavailable") from exc

	def get(self, user_id: str) -> MFASettings | None:
		with self._transaction() as session:
			record = session.get(MFASettingsRecord, user_id)
			if record is None:
				return None
			return self._to_settings(record, self._load_devices(session, user_id))

	def upsert(self, user_id: str, **fields: Any) -> MFASettings:
		_check_fields(fields)
		with self._transaction() as session:
			record = session.get(MFASettingsRecord, user_id)
			if record is None:
				record = MFASettingsRecord(user_id=user_id)
				session.add(record)

			for name, value in fields.items():
				if not hasattr(MFASettingsRecord, name):
					raise ValueError(f"Unknown MFA settings field: {name}")
				if isinstance(value, MFAMethod):
					value = value.value
				setattr(record, name, value)
			record.updated_at = utcnow()
			session.flush()

			return self._to_settings(record, self._load_devices(session, user_id))

	def replace_backup_codes(self, user_id: str, digests: list[str]) -> None:
		with self._transaction() as session:
			result = session.execute(
				update(MFASettingsRecord)
				.where(MFASettingsRecord.user_id == user_id)
				.values(backup_codes_used=0, updated_at=utcnow())
			)
			if result.rowcount == 0:
				raise NotConfigured("MFA is not configured for this user")

			session.execute(
				delete(BackupCodeRecord).where(BackupCodeRecord.user_id == user_id)
			)
			session.add_all(
				BackupCodeRecord(user_id=user_id, digest=digest) for digest in digests
			)

	def consume_backup_code(self, user_id: str, digest: str) -> bool:
		with self._transaction() as session:
			# Compare-and-delete: only one transaction can remove the row
			result = session.execute(
				delete(BackupCodeRecord).where(
					BackupCodeRecord.user_id == user_id,
					BackupCodeRecord.digest == digest,
				)
			)
			if result.rowcount != 1:
				return False

			session.execute(
				update(MFASettingsRecord)
				.where(MFASettingsRecord.user_id == user_id)
				.values(
					backup_codes_used=MFASettingsRecord.backup_codes_used + 1,
					updated_at=utcnow(),
				)
			)
			return True

	def disable(self, user_id: str) -> MFASettings:
		"""Clear the factor and drop every backup code in one transaction."""
		with self._transaction() as session:
			record = session.get(MFASettingsRecord, user_id)
			if record is None:
				raise NotConfigured("MFA is not configured for this user")

			for name, value in _DISABLED.items():
				setattr(record, name, value)
			# delete-orphan: emptying the collection deletes the rows
			record.backup_codes = []
			record.updated_at = utcnow()
			session.flush()

			return self._to_settings(record, self._load_devices(session, user_id))

	def add_device(self, user_id: str, device: TrustedDevice) -> None:
		with self._transaction() as session:
			session.add(TrustedDeviceRecord(
				user_id=user_id,
				fingerprint=device.fingerprint,
				name=device.name,
				added_at=device.added_at,
				expires_at=device.expires_at,
			))

	def list_devices(self, user_id: str) -> list[TrustedDevice]:
		with self._transaction() as session:
			return self._load_devices(session, user_id)

	def remove_devices(self, user_id: str, fingerprint: str) -> int:
		with self._transaction() as session:
			result = session.execute(
				delete(TrustedDeviceRecord).where(
					TrustedDeviceRecord.user_id == user_id,
					TrustedDeviceRecord.fingerprint == fingerprint,
				)
			)
			return result.rowcount

	def purge_expired_devices(self, user_id: str, now: datetime) -> int:
		with self._transaction() as session:
			records = session.scalars(
				select(TrustedDeviceRecord).where(TrustedDeviceRecord.user_id == user_id)
			).all()
			expired = [r.id for r in records if _aware(r.expires_at) <= now]
			if expired:
				session.execute(
					delete(TrustedDeviceRecord).where(TrustedDeviceRecord.id.in_(expired))
				)
			return len(expired)

	@staticmethod
	def _load_devices(session: Session, user_id: str) -> list[TrustedDevice]:
		stmt = (
			select(TrustedDeviceRecord)
			.where(TrustedDeviceRecord.user_id == user_id)
			.order_by(TrustedDeviceRecord.added_at)
		)
		return [
			TrustedDevice(
				fingerprint=r.fingerprint,
				name=r.name,
				added_at=_aware(r.added_at),
				expires_at=_aware(r.expires_at),
			)
			for r in session.scalars(stmt)
		]

	@staticmethod
	def _to_settings(
		record: MFASettingsRecord,
		devices: list[TrustedDevice],
	) -> MFASettings:
		return MFASettings(
			user_id=record.user_id,
			tenant_id=record.tenant_id,
			mfa_enabled=bool(record.mfa_enabled),
			mfa_method=MFAMethod(record.mfa_method) if record.mfa_method else None,
			totp_secret=record.totp_secret,
			totp_verified=bool(record.totp_verified),
			totp_verified_at=_aware(record.totp_verified_at),
			phone_number=record.phone_number,
			recovery_email=record.recovery_email,
			backup_codes=[c.digest for c in record.backup_codes],
			backup_codes_used=record.backup_codes_used or 0,
			trusted_devices=devices,
			enforce_mfa=bool(record.enforce_mfa),
			created_at=_aware(record.created_at),
			updated_at=_aware(record.updated_at),
		)
