from __future__ import annotations

import base64
import binascii

from .errors import CaptureError, CaptureFailure
from .models import CaptureResult

PNG_DATA_URI_PREFIX = "data:image/png;base64,"
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def encode_data_uri(png: bytes) -> str:
    if not png.startswith(_PNG_SIGNATURE):
        raise CaptureFailure("Refusing to encode data that is not a PNG image.")
    return PNG_DATA_URI_PREFIX + base64.b64encode(png).decode("ascii")


def decode_data_uri(data_uri: str) -> bytes:
    if not data_uri.startswith(PNG_DATA_URI_PREFIX):
        raise ValueError("Not a PNG data URI.")
    try:
        return base64.b64decode(data_uri[len(PNG_DATA_URI_PREFIX):], validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Malformed PNG data URI: {exc}") from exc


def success_result(png: bytes) -> CaptureResult:
    return CaptureResult(success=True, screenshot=encode_data_uri(png))


def failure_result(error: CaptureError) -> CaptureResult:
    return CaptureResult(success=False, error=error.message, error_type=error.kind)
