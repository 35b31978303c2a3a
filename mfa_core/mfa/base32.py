# (c) Copyright Datacraft, 2026
"""Base32 codec for OTP shared secrets (RFC 4648 alphabet, no padding)."""

import secrets

from mfa_core.exceptions import InvalidEncoding

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_INDEX = {char: value for value, char in enumerate(ALPHABET)}


def encode_random(length: int = 32) -> str:
	"""Generate a random base32 string of ``length`` characters.

	Each random byte is reduced modulo 32; since 256 is a multiple of 32
	every character is equally likely.
	"""
	random_bytes = secrets.token_bytes(length)
	return "".join(ALPHABET[b % 32] for b in random_bytes)


def encode(data: bytes) -> str:
	"""Encode bytes as unpadded base32."""
	buffer = 0
	bits = 0
	out = []
	for byte in data:
		buffer = (buffer << 8) | byte
		bits += 8
		while bits >= 5:
			bits -= 5
			out.append(ALPHABET[(buffer >> bits) & 0x1F])
	if bits:
		out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])
	return "".join(out)


def decode(secret: str) -> bytes:
	"""Decode a base32 secret.

	Args:
		secret: Base32 string, any case, optionally ``=`` padded

	Returns:
		Decoded bytes; trailing bits that do not fill a byte are dropped

	Raises:
		InvalidEncoding: If a character is outside the base32 alphabet
	"""
	buffer = 0
	bits = 0
	out = bytearray()
	for char in secret.upper().rstrip("="):
		value = _INDEX.get(char)
		if value is None:
			raise InvalidEncoding("Invalid base32 character")
		buffer = ((buffer << 5) | value) & 0xFFF
		bits += 5
		if bits >= 8:
			bits -= 8
			out.append((buffer >> bits) & 0xFF)
	return bytes(out)


def format_for_display(secret: str) -> str:
	"""Group a secret in blocks of 4 characters for manual entry."""
	return " ".join(secret[i:i + 4] for i in range(0, len(secret), 4))


def normalize(secret: str) -> str:
	"""Undo ``format_for_display``."""
	return "".join(secret.split())
