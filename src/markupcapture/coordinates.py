from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Mapping

from .config import CaptureSettings
from .errors import DetachedSurfaceError, InvalidInput
from .models import CaptureRequest, NormalizedClick, PointerEvent, SurfaceRect


def normalize_viewport_size(
    width: Any,
    height: Any,
    *,
    default_width: int = 1440,
    default_height: int = 900,
    minimum: int = 320,
) -> tuple[int, int]:
    resolved_width = _to_finite_float(width)
    resolved_height = _to_finite_float(height)
    if not resolved_width:
        resolved_width = float(default_width)
    if not resolved_height:
        resolved_height = float(default_height)
    return max(minimum, int(round(resolved_width))), max(minimum, int(round(resolved_height)))


def normalize_url(raw_url: Any) -> str:
    if not isinstance(raw_url, str):
        return ""
    url = raw_url.strip()
    if not url:
        return ""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


def normalize_click(
    event: PointerEvent,
    rect: SurfaceRect,
    device_pixel_ratio: float | None = None,
) -> NormalizedClick:
    """Convert a pointer event on the capture surface into capture coordinates.

    Percentages are relative to the surface rectangle, pixel offsets are
    measured from its top-left corner. A surface without a measurable size
    (detached, hidden, not yet laid out) is rejected instead of producing
    NaN or infinite percentages.
    """
    width = _to_finite_float(rect.width)
    height = _to_finite_float(rect.height)
    if not width or not height or width < 0 or height < 0:
        raise DetachedSurfaceError(
            f"Capture surface has no measurable size ({rect.width}x{rect.height})."
        )

    x_px = float(event.client_x) - float(rect.left)
    y_px = float(event.client_y) - float(rect.top)
    if not (math.isfinite(x_px) and math.isfinite(y_px)):
        raise InvalidInput("Pointer coordinates are not finite numbers.")

    dpr = _to_finite_float(device_pixel_ratio)
    if dpr is None or dpr <= 0:
        dpr = 1.0

    return NormalizedClick(
        x=x_px / width * 100.0,
        y=y_px / height * 100.0,
        x_px=x_px,
        y_px=y_px,
        viewport_width=int(round(width)),
        viewport_height=int(round(height)),
        device_pixel_ratio=dpr,
    )


def build_capture_payload(
    click: NormalizedClick,
    url: str,
    *,
    scroll: tuple[int, int] | None = None,
) -> dict[str, Any]:
    return {
        "url": url.strip(),
        "x": click.x,
        "y": click.y,
        "xPx": int(round(click.x_px)),
        "yPx": int(round(click.y_px)),
        "viewportWidth": click.viewport_width,
        "viewportHeight": click.viewport_height,
        "scrollX": scroll[0] if scroll else 0,
        "scrollY": scroll[1] if scroll else 0,
        "devicePixelRatio": click.device_pixel_ratio,
    }


def parse_capture_request(
    payload: Mapping[str, Any] | None,
    settings: CaptureSettings | None = None,
) -> CaptureRequest:
    if not isinstance(payload, Mapping):
        raise InvalidInput("Capture request body must be an object.")
    settings = settings or CaptureSettings()

    url = normalize_url(payload.get("url"))
    if not url:
        raise InvalidInput("URL is required.")

    width, height = normalize_viewport_size(
        payload.get("viewportWidth"),
        payload.get("viewportHeight"),
        default_width=settings.default_viewport_width,
        default_height=settings.default_viewport_height,
        minimum=settings.min_viewport_size,
    )
    dpr = _coordinate(payload.get("devicePixelRatio"))
    return CaptureRequest(
        url=url,
        viewport_width=width,
        viewport_height=height,
        x=_coordinate(payload.get("x")),
        y=_coordinate(payload.get("y")),
        x_px=_coordinate(payload.get("xPx")),
        y_px=_coordinate(payload.get("yPx")),
        scroll_x=_scroll_offset(payload.get("scrollX")),
        scroll_y=_scroll_offset(payload.get("scrollY")),
        device_pixel_ratio=dpr if dpr and dpr > 0 else 1.0,
    )


def normalize_capture_request(
    request: CaptureRequest,
    settings: CaptureSettings | None = None,
) -> CaptureRequest:
    """Apply the same checks as ``parse_capture_request`` to a built request."""
    settings = settings or CaptureSettings()
    url = normalize_url(request.url)
    if not url:
        raise InvalidInput("URL is required.")

    width, height = normalize_viewport_size(
        request.viewport_width,
        request.viewport_height,
        default_width=settings.default_viewport_width,
        default_height=settings.default_viewport_height,
        minimum=settings.min_viewport_size,
    )
    dpr = _coordinate(request.device_pixel_ratio)
    return replace(
        request,
        url=url,
        viewport_width=width,
        viewport_height=height,
        x=_coordinate(request.x),
        y=_coordinate(request.y),
        x_px=_coordinate(request.x_px),
        y_px=_coordinate(request.y_px),
        scroll_x=_scroll_offset(request.scroll_x),
        scroll_y=_scroll_offset(request.scroll_y),
        device_pixel_ratio=dpr if dpr and dpr > 0 else 1.0,
    )


def _coordinate(value: Any) -> float | None:
    # JSON booleans and numeric strings are not coordinates.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return _to_finite_float(value)


def _scroll_offset(value: Any) -> int:
    number = _coordinate(value)
    if number is None:
        return 0
    return max(0, int(round(number)))


def _to_finite_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number
