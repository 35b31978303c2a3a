# (c) Copyright Datacraft, 2026
"""Backup codes for MFA recovery."""

import hmac
import logging
import secrets
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

# Letters and digits without I, O, 0 and 1
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8


def generate_backup_code(length: int = CODE_LENGTH) -> str:
	random_bytes = secrets.token_bytes(length)
	return "".join(CODE_ALPHABET[b % len(CODE_ALPHABET)] for b in random_bytes)


def normalize_backup_code(code: str) -> str:
	"""Remove separators and whitespace and upper-case a submitted code."""
	return "".join(code.split()).replace("-", "").upper()


class BackupCodeManager:
	"""Issues backup codes and consumes them against a store."""

	def __init__(self, hasher, code_count: int = 10):
		"""Initialize backup code manager.

		Args:
			hasher: Object with a deterministic ``hash(value) -> str``
			code_count: Number of backup codes to generate
		"""
		self.hasher = hasher
		self.code_count = code_count

	def hash_code(self, code: str) -> str:
		return self.hasher.hash(normalize_backup_code(code))

	def generate(self, count: int | None = None) -> tuple[list[str], list[str]]:
		"""Generate new backup codes.

		Returns:
			Tuple of (plain_codes, hashed_codes), in the same order
		"""
		if count is None:
			count = self.code_count
		plain_codes: list[str] = []
		while len(plain_codes) < count:
			code = generate_backup_code()
			if code not in plain_codes:
				plain_codes.append(code)
		hashed_codes = [self.hash_code(c) for c in plain_codes]
		return plain_codes, hashed_codes

	def find_match(self, stored_hashes: list[str], code: str) -> str | None:
		"""Return the stored digest matching ``code``, if any.

		All digests are compared so timing does not reveal the position.
		"""
		code_hash = self.hash_code(code)
		match = None
		for stored_hash in stored_hashes:
			if hmac.compare_digest(code_hash.encode(), stored_hash.encode()):
				match = stored_hash
		return match

	def verify_and_consume(self, store, user_id: str, code: str) -> bool:
		"""Verify a backup code and remove it from the store.

		The store deletes the digest with a single conditional update, so
		of two concurrent requests with the same code only one succeeds.
		"""
		if not normalize_backup_code(code):
			return False

		consumed = store.consume_backup_code(user_id, self.hash_code(code))
		if consumed:
			logger.warning(f"Backup code used for user {user_id}")
		return consumed

	def format_codes_for_display(
		self,
		codes: list[str],
		issuer: str = "ClearNav",
		account: str | None = None,
		generated_at: datetime | None = None,
	) -> str:
		"""Lay out backup codes as a printable recovery sheet.

		Codes are shown as ``XXXX-XXXX`` in two columns; the hyphen is
		ignored when a code is submitted.

		Args:
			codes: List of plain text codes
			issuer: Name printed in the header
			account: Optional account label printed under the header
			generated_at: Timestamp for the footer, defaults to now

		Returns:
			The sheet as a single string
		"""
		generated_at = (generated_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
		title = f"{issuer} recovery codes"
		lines = [title, "-" * len(title)]
		if account:
			lines.append(f"Account: {account}")
		lines.append(f"{len(codes)} single-use codes. Keep them somewhere safe.")
		lines.append("")

		grouped = [f"{c[:4]}-{c[4:]}" for c in codes]
		for i in range(0, len(grouped), 2):
			lines.append("   ".join(grouped[i:i + 2]))

		lines.append("")
		lines.append(f"Generated {generated_at:%Y-%m-%d %H:%M} UTC")

		return "\n".join(lines)
