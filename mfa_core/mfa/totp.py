# (c) Copyright Datacraft, 2026
"""TOTP (Time-based One-Time Password) implementation, RFC 6238."""

import hashlib
import hmac
import struct
import time
import urllib.parse
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from . import base32

QRRenderer = Callable[[str], str]


@dataclass
class TOTPSetup:
	"""TOTP setup data shown once while enabling 2FA."""
	secret: str
	provisioning_uri: str
	manual_entry_key: str
	qr_code: str | None = None


def compute_code(secret: bytes, time_step: int, digits: int = 6) -> str:
	"""Compute the HOTP value of ``secret`` for counter ``time_step``.

	Args:
		secret: Raw shared secret
		time_step: Counter value (Unix time divided by the period for TOTP)
		digits: Number of digits in the code

	Returns:
		Zero-padded code
	"""
	counter_bytes = struct.pack(">Q", time_step)
	hmac_hash = hmac.new(secret, counter_bytes, hashlib.sha1).digest()

	# Dynamic truncation
	offset = hmac_hash[-1] & 0x0F
	code_int = struct.unpack(">I", hmac_hash[offset:offset + 4])[0] & 0x7FFFFFFF
	return str(code_int % (10 ** digits)).zfill(digits)


def _timestamp(now: float | datetime | None) -> float:
	if now is None:
		return time.time()
	if isinstance(now, datetime):
		return now.timestamp()
	return now


class TOTPEngine:
	"""Generates and verifies TOTP codes."""

	algorithm = "SHA1"

	def __init__(
		self,
		issuer: str = "ClearNav",
		digits: int = 6,
		period: int = 30,
		valid_window: int = 1,
	):
		"""Initialize TOTP engine.

		Args:
			issuer: Name shown in authenticator apps
			digits: Number of digits in OTP code
			period: Time step length in seconds
			valid_window: Number of steps checked before/after current
		"""
		self.issuer = issuer
		self.digits = digits
		self.period = period
		self.valid_window = valid_window

	@classmethod
	def from_settings(cls, settings) -> "TOTPEngine":
		return cls(
			issuer=settings.issuer,
			digits=settings.totp_digits,
			period=settings.totp_period,
			valid_window=settings.totp_valid_window,
		)

	def provisioning_uri(
		self,
		secret: str,
		account_label: str,
		issuer: str | None = None,
	) -> str:
		"""Generate otpauth:// URI for authenticator apps.

		Args:
			secret: Base32-encoded secret
			account_label: Account name shown in the app, usually an email
			issuer: Overrides the engine issuer

		Returns:
			otpauth:// URI string
		"""
		issuer = issuer or self.issuer
		label = (
			f"{urllib.parse.quote(issuer, safe='')}:"
			f"{urllib.parse.quote(account_label, safe='')}"
		)
		params = {
			"secret": secret,
			"issuer": issuer,
			"algorithm": self.algorithm,
			"digits": str(self.digits),
			"period": str(self.period),
		}
		query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote)
		return f"otpauth://totp/{label}?{query}"

	def generate_secret(
		self,
		account_label: str,
		issuer: str | None = None,
		qr_renderer: QRRenderer | None = None,
	) -> TOTPSetup:
		"""Generate complete TOTP setup for a user.

		The engine does not draw QR codes; ``qr_renderer`` receives the
		provisioning URI and its result is returned as ``qr_code``.

		Returns:
			TOTPSetup with secret, URI and display key
		"""
		secret = base32.encode_random(32)
		uri = self.provisioning_uri(secret, account_label, issuer)

		return TOTPSetup(
			secret=secret,
			provisioning_uri=uri,
			manual_entry_key=base32.format_for_display(secret),
			qr_code=qr_renderer(uri) if qr_renderer else None,
		)

	def time_step(self, now: float | datetime | None = None) -> int:
		return int(_timestamp(now) // self.period)

	def verify(
		self,
		secret: str,
		code: str,
		now: float | datetime | None = None,
	) -> bool:
		"""Verify a TOTP code.

		Every candidate in the window is computed and compared so the
		work does not depend on which one matches.

		Args:
			secret: Base32-encoded secret
			code: Code to verify
			now: Unix time or aware datetime, defaults to the current time

		Returns:
			True if code is valid

		Raises:
			InvalidEncoding: If the secret is not valid base32
		"""
		key = base32.decode(secret)

		# Clean the code (remove spaces, dashes)
		code = code.replace(" ", "").replace("-", "")
		if not code.isdigit() or len(code) != self.digits:
			return False

		current = self.time_step(now)
		matched = False
		for offset in range(-self.valid_window, self.valid_window + 1):
			if current + offset < 0:
				continue
			expected = compute_code(key, current + offset, self.digits)
			if hmac.compare_digest(code.encode(), expected.encode()):
				matched = True

		return matched

	def current_code(self, secret: str, now: float | datetime | None = None) -> str:
		"""Get the code for the current time step (for testing)."""
		return compute_code(base32.decode(secret), self.time_step(now), self.digits)

	def time_remaining(self, now: float | datetime | None = None) -> int:
		"""Get seconds remaining in current TOTP interval."""
		return self.period - int(_timestamp(now) % self.period)
