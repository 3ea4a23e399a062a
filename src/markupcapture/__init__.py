from __future__ import annotations

from .config import CaptureSettings
from .coordinates import build_capture_payload, normalize_click, normalize_viewport_size, parse_capture_request
from .errors import (
    AnnotationFailure,
    CaptureError,
    CaptureFailure,
    DetachedSurfaceError,
    InvalidInput,
    NavigationFailure,
    RenderTimeout,
)
from .models import CaptureRequest, CaptureResult, NormalizedClick, PointerEvent, SurfaceRect
from .pipeline import capture_markup

__version__ = "0.1.0"

__all__ = [
    "AnnotationFailure",
    "CaptureError",
    "CaptureFailure",
    "CaptureRequest",
    "CaptureResult",
    "CaptureSettings",
    "DetachedSurfaceError",
    "InvalidInput",
    "NavigationFailure",
    "NormalizedClick",
    "PointerEvent",
    "RenderTimeout",
    "SurfaceRect",
    "build_capture_payload",
    "capture_markup",
    "normalize_click",
    "normalize_viewport_size",
    "parse_capture_request",
]
