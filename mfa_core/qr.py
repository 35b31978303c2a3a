# (c) Copyright Datacraft, 2026
"""QR rendering for provisioning URIs."""

import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

ERROR_CORRECTION = {
	"L": ERROR_CORRECT_L,
	"M": ERROR_CORRECT_M,
	"Q": ERROR_CORRECT_Q,
	"H": ERROR_CORRECT_H,
}


def render_png(
	provisioning_uri: str,
	box_size: int = 8,
	border: int = 4,
	error_correction: str = "M",
) -> bytes:
	"""Render a provisioning URI as PNG bytes.

	The symbol version is picked to fit the URI, which grows with long
	issuer and account labels.

	Args:
		provisioning_uri: otpauth:// URI
		box_size: Pixels per module
		border: Quiet zone width in modules
		error_correction: One of ``L``, ``M``, ``Q``, ``H``

	Returns:
		PNG image bytes
	"""
	try:
		level = ERROR_CORRECTION[error_correction.upper()]
	except KeyError:
		raise ValueError(f"Unknown QR error correction level: {error_correction}") from None

	qr = qrcode.QRCode(version=None, error_correction=level, box_size=box_size, border=border)
	qr.add_data(provisioning_uri)
	qr.make(fit=True)

	buffer = io.BytesIO()
	qr.make_image().save(buffer, format="PNG")
	return buffer.getvalue()


def render_png_base64(provisioning_uri: str) -> str:
	"""Base64 PNG, the form stored on ``TOTPSetup.qr_code``."""
	return base64.b64encode(render_png(provisioning_uri)).decode("ascii")


def render_data_uri(provisioning_uri: str) -> str:
	"""Render as a ``data:`` URI usable directly in an <img> tag."""
	return f"data:image/png;base64,{render_png_base64(provisioning_uri)}"
