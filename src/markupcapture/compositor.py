from __future__ import annotations

import io
from typing import Callable

from PIL import Image, ImageDraw, UnidentifiedImageError

from .errors import AnnotationFailure
from .models import CaptureRequest, MarkerCenter

MARKER_RGB = (239, 68, 68)
OUTLINE_RGB = (255, 255, 255)

HALO_RADIUS = 35
HALO_ALPHA = 38  # ~0.15
RING_RADIUS = 25
RING_WIDTH = 3
DOT_RADIUS = 8
DOT_OUTLINE_WIDTH = 2
GUIDE_WIDTH = 1
GUIDE_ALPHA = 128  # ~0.5
GUIDE_DASH = (8, 4)
# Centers further than this outside the canvas draw nothing visible.
OFF_CANVAS_MARGIN = HALO_RADIUS + 1


def resolve_marker_center(request: CaptureRequest, image_width: int, image_height: int) -> MarkerCenter | None:
    """Pick the marker center on an image of the given size.

    Absolute pixel coordinates win whenever both are present; they exist so the
    marker lands exactly where the reviewer clicked without percentage round
    trips. Percentages are only used as a fallback.
    """
    if request.has_pixel_point:
        return MarkerCenter(x=int(round(request.x_px)), y=int(round(request.y_px)), source="pixels")
    if request.has_percent_point:
        return MarkerCenter(
            x=int(round(request.x / 100.0 * image_width)),
            y=int(round(request.y / 100.0 * image_height)),
            source="percent",
        )
    return None


def annotate_png(png: bytes, center: MarkerCenter) -> bytes:
    try:
        with Image.open(io.BytesIO(png)) as source:
            source.load()
            canvas = source.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise AnnotationFailure(f"Could not decode screenshot for annotation: {exc}") from exc

    try:
        draw_marker(canvas, center.x, center.y)
        buffer = io.BytesIO()
        canvas.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise AnnotationFailure(f"Could not draw click marker: {exc}") from exc
    return buffer.getvalue()


def draw_marker(canvas: Image.Image, cx: int, cy: int) -> None:
    """Burn the click marker into an RGBA canvas, back to front.

    Each layer is drawn on its own transparent overlay and alpha-composited so
    translucent guides blend with the layers below instead of replacing them.
    """
    width, height = canvas.size
    cx = _clamp(cx, -OFF_CANVAS_MARGIN, width + OFF_CANVAS_MARGIN)
    cy = _clamp(cy, -OFF_CANVAS_MARGIN, height + OFF_CANVAS_MARGIN)

    def halo(draw: ImageDraw.ImageDraw) -> None:
        draw.ellipse(_circle_box(cx, cy, HALO_RADIUS), fill=(*MARKER_RGB, HALO_ALPHA))

    def ring(draw: ImageDraw.ImageDraw) -> None:
        # Pillow strokes inward from the box edge; center the stroke on the radius.
        outer = RING_RADIUS + RING_WIDTH / 2
        draw.ellipse(_circle_box(cx, cy, outer), outline=(*MARKER_RGB, 255), width=RING_WIDTH)

    def dot(draw: ImageDraw.ImageDraw) -> None:
        half = DOT_OUTLINE_WIDTH / 2
        draw.ellipse(_circle_box(cx, cy, DOT_RADIUS + half), fill=(*OUTLINE_RGB, 255))
        draw.ellipse(_circle_box(cx, cy, DOT_RADIUS - half), fill=(*MARKER_RGB, 255))

    def guides(draw: ImageDraw.ImageDraw) -> None:
        color = (*MARKER_RGB, GUIDE_ALPHA)
        for start, end in _dash_spans(width, GUIDE_DASH):
            draw.line([(start, cy), (end - 1, cy)], fill=color, width=GUIDE_WIDTH)
        for start, end in _dash_spans(height, GUIDE_DASH):
            draw.line([(cx, start), (cx, end - 1)], fill=color, width=GUIDE_WIDTH)

    for layer in (halo, ring, dot, guides):
        _composite_layer(canvas, layer)


def _composite_layer(canvas: Image.Image, paint: Callable[[ImageDraw.ImageDraw], None]) -> None:
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    paint(ImageDraw.Draw(overlay))
    canvas.alpha_composite(overlay)


def _circle_box(cx: float, cy: float, radius: float) -> list[float]:
    return [cx - radius, cy - radius, cx + radius, cy + radius]


def _dash_spans(length: int, pattern: tuple[int, int]) -> list[tuple[int, int]]:
    on, off = pattern
    spans: list[tuple[int, int]] = []
    position = 0
    while position < length:
        spans.append((position, min(position + on, length)))
        position += on + off
    return spans


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
