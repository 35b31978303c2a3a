# (c) Copyright Datacraft, 2026
"""SQLAlchemy models for MFA settings, backup codes and trusted devices."""
from datetime import datetime, timezone

from sqlalchemy import (
	Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class MFASettingsRecord(Base):
	__tablename__ = "mfa_settings"

	user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
	tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
	mfa_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
	mfa_method: Mapped[str | None] = mapped_column(String(16), nullable=True)
	totp_secret: Mapped[str | None] = mapped_column(String(512), nullable=True)
	totp_verified: Mapped[bool] = mapped_column(Boolean, default=False)
	totp_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
	phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
	recovery_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
	backup_codes_used: Mapped[int] = mapped_column(Integer, default=0)
	enforce_mfa: Mapped[bool] = mapped_column(Boolean, default=False)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
	updated_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), default=utcnow, onupdate=utcnow
	)

	backup_codes: Mapped[list["BackupCodeRecord"]] = relationship(
		cascade="all, delete-orphan", lazy="selectin"
	)


class BackupCodeRecord(Base):
	__tablename__ = "mfa_backup_codes"
	__table_args__ = (UniqueConstraint("user_id", "digest"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	user_id: Mapped[str] = mapped_column(
		ForeignKey("mfa_settings.user_id", ondelete="CASCADE"), index=True
	)
	digest: Mapped[str] = mapped_column(String(128))


class TrustedDeviceRecord(Base):
	__tablename__ = "mfa_trusted_devices"
	__table_args__ = (Index("ix_mfa_trusted_devices_user_fp", "user_id", "fingerprint"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	user_id: Mapped[str] = mapped_column(String(64))
	fingerprint: Mapped[str] = mapped_column(String(128))
	name: Mapped[str] = mapped_column(String(255))
	added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
	expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
