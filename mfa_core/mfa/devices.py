# (c) Copyright Datacraft, 2026
"""Trusted device fingerprinting and registry."""

import hmac
import logging
import re
from datetime import datetime, timedelta, timezone

from mfa_core.schema import DeviceInfo, DeviceSignals, TrustedDevice

logger = logging.getLogger(__name__)

FINGERPRINT_SEPARATOR = "|||"


def _component(value) -> str:
	if value is None:
		return ""
	if isinstance(value, bool):
		return "true" if value else "false"
	return str(value)


def fingerprint_components(signals: DeviceSignals) -> list[str]:
	"""Signals in the fixed order they are fingerprinted in."""
	components = [
		signals.user_agent,
		signals.language,
		signals.hardware_concurrency,
		signals.max_touch_points,
		signals.screen_width,
		signals.screen_height,
		signals.color_depth,
		signals.timezone_offset,
		signals.session_storage,
		signals.local_storage,
		signals.platform,
	]
	if signals.canvas is not None:
		components.append(signals.canvas)
	return [_component(c) for c in components]


def describe_device(user_agent: str) -> DeviceInfo:
	"""Derive display labels from a user agent string."""
	info = DeviceInfo()

	if "Firefox" in user_agent:
		info.browser = "Firefox"
	elif "Edg" in user_agent:
		info.browser = "Edge"
	elif "Chrome" in user_agent:
		info.browser = "Chrome"
	elif "Safari" in user_agent:
		info.browser = "Safari"

	if "Windows" in user_agent:
		info.os = "Windows"
	elif "iPhone" in user_agent or "iPad" in user_agent:
		info.os = "iOS"
	elif "Mac" in user_agent:
		info.os = "macOS"
	elif "Android" in user_agent:
		info.os = "Android"
	elif "Linux" in user_agent:
		info.os = "Linux"

	if re.search(r"Mobile|Android|iPhone|iPad", user_agent):
		info.device_type = "Mobile"

	return info


class TrustedDeviceRegistry:
	"""Tracks devices that may skip the second factor until they expire."""

	def __init__(self, store, hasher, ttl_days: int = 30):
		self.store = store
		self.hasher = hasher
		self.ttl_days = ttl_days

	def fingerprint(self, signals: DeviceSignals) -> str:
		"""Digest of the device signals; identical signals give identical digests."""
		data = FINGERPRINT_SEPARATOR.join(fingerprint_components(signals))
		return self.hasher.hash(data)

	def add(
		self,
		user_id: str,
		fingerprint: str,
		name: str,
		ttl_days: int | None = None,
		now: datetime | None = None,
	) -> TrustedDevice:
		now = now or datetime.now(timezone.utc)
		device = TrustedDevice(
			fingerprint=fingerprint,
			name=name,
			added_at=now,
			expires_at=now + timedelta(days=self.ttl_days if ttl_days is None else ttl_days),
		)
		self.store.add_device(user_id, device)

		logger.info(f"Trusted device '{name}' added for user {user_id}")

		return device

	def is_trusted(
		self,
		user_id: str,
		fingerprint: str,
		now: datetime | None = None,
	) -> bool:
		now = now or datetime.now(timezone.utc)
		trusted = False
		for device in self.store.list_devices(user_id):
			if hmac.compare_digest(device.fingerprint.encode(), fingerprint.encode()) and device.is_active(now):
				trusted = True
		return trusted

	def remove(self, user_id: str, fingerprint: str) -> int:
		"""Remove every record for ``fingerprint``, expired or not."""
		removed = self.store.remove_devices(user_id, fingerprint)
		if removed:
			logger.info(f"Removed {removed} trusted device record(s) for user {user_id}")
		return removed

	def list_devices(
		self,
		user_id: str,
		now: datetime | None = None,
		include_expired: bool = False,
	) -> list[TrustedDevice]:
		devices = self.store.list_devices(user_id)
		if include_expired:
			return devices
		now = now or datetime.now(timezone.utc)
		return [d for d in devices if d.is_active(now)]

	def purge_expired(self, user_id: str, now: datetime | None = None) -> int:
		return self.store.purge_expired_devices(user_id, now or datetime.now(timezone.utc))
