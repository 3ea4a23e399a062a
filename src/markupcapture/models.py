from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PointerEvent:
    client_x: float
    client_y: float


@dataclass(frozen=True, slots=True)
class SurfaceRect:
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class NormalizedClick:
    x: float
    y: float
    x_px: float
    y_px: float
    viewport_width: int
    viewport_height: int
    device_pixel_ratio: float = 1.0


@dataclass(frozen=True, slots=True)
class CaptureRequest:
    url: str
    viewport_width: int
    viewport_height: int
    x: float | None = None
    y: float | None = None
    x_px: float | None = None
    y_px: float | None = None
    scroll_x: int = 0
    scroll_y: int = 0
    device_pixel_ratio: float = 1.0

    @property
    def viewport(self) -> tuple[int, int]:
        return self.viewport_width, self.viewport_height

    @property
    def has_pixel_point(self) -> bool:
        return self.x_px is not None and self.y_px is not None

    @property
    def has_percent_point(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def wants_marker(self) -> bool:
        return self.has_pixel_point or self.has_percent_point

    @property
    def wants_scroll(self) -> bool:
        return self.scroll_x > 0 or self.scroll_y > 0


@dataclass(frozen=True, slots=True)
class MarkerCenter:
    x: int
    y: int
    source: str


@dataclass(frozen=True, slots=True)
class CaptureResult:
    success: bool
    screenshot: str | None = None
    error: str | None = None
    error_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "screenshot": self.screenshot}
        return {"success": False, "error": self.error, "errorType": self.error_type}
