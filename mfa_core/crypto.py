# (c) Copyright Datacraft, 2026
"""AES-256-GCM field encryption and digests for MFA secrets."""

import base64
import hashlib
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from mfa_core.config import Settings

_NONCE_SIZE = 12  # 96-bit nonce for AES-GCM


class FieldCipher:
	"""Encrypts TOTP secrets at rest and digests backup codes and fingerprints."""

	def __init__(self, key: bytes):
		if len(key) != 32:
			raise ValueError("Encryption key must be 32 bytes")
		self._aead = AESGCM(key)

	@classmethod
	def from_settings(cls, settings: Settings) -> "FieldCipher":
		if not settings.encryption_key:
			raise RuntimeError("MFA_ENCRYPTION_KEY not set")
		return cls(base64.b64decode(settings.encryption_key))

	@staticmethod
	def generate_key() -> bytes:
		return AESGCM.generate_key(bit_length=256)

	def encrypt(self, plaintext: str) -> str:
		"""Encrypt a string. Returns base64(nonce + ciphertext)."""
		nonce = os.urandom(_NONCE_SIZE)
		ct = self._aead.encrypt(nonce, plaintext.encode(), None)
		return base64.b64encode(nonce + ct).decode()

	def decrypt(self, token: str) -> str:
		"""Decrypt a base64(nonce + ciphertext) token back to plaintext."""
		raw = base64.b64decode(token)
		nonce, ct = raw[:_NONCE_SIZE], raw[_NONCE_SIZE:]
		return self._aead.decrypt(nonce, ct, None).decode()

	def hash(self, value: str) -> str:
		"""Deterministic SHA-256 digest, base64 encoded."""
		digest = hashlib.sha256(value.encode("utf-8")).digest()
		return base64.b64encode(digest).decode()
