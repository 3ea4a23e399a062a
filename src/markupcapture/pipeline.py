from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncContextManager, Callable, Mapping

from .browser_session import BrowserSession, open_browser_session
from .capture_state import CaptureProgress, CaptureState
from .compositor import annotate_png, resolve_marker_center
from .config import CaptureSettings
from .coordinates import normalize_capture_request, parse_capture_request
from .encoder import failure_result, success_result
from .errors import CaptureError, CaptureFailure
from .models import CaptureRequest, CaptureResult
from .stability import build_stability_steps, run_wait_steps

logger = logging.getLogger("markupcapture.capture")

SessionFactory = Callable[[tuple[int, int], CaptureSettings], AsyncContextManager[BrowserSession]]


async def capture_markup(
    request: CaptureRequest | Mapping[str, Any],
    settings: CaptureSettings | None = None,
    *,
    session_factory: SessionFactory = open_browser_session,
    progress: CaptureProgress | None = None,
) -> CaptureResult:
    """Render ``request.url`` in a fresh headless browser and mark the click.

    Always returns a ``CaptureResult``: either a PNG data URI of exactly the
    requested viewport, or the message of the failure that stopped the
    pipeline. The browser started for this call is closed before returning.
    """
    settings = settings or CaptureSettings()
    progress = progress or CaptureProgress()
    try:
        if isinstance(request, CaptureRequest):
            request = normalize_capture_request(request, settings)
        else:
            request = parse_capture_request(request, settings)
        logger.info(
            "Capture started: url=%s viewport=%sx%s x=%s y=%s xPx=%s yPx=%s scroll=%s,%s dpr=%s",
            request.url,
            request.viewport_width,
            request.viewport_height,
            request.x,
            request.y,
            request.x_px,
            request.y_px,
            request.scroll_x,
            request.scroll_y,
            request.device_pixel_ratio,
        )

        progress.advance(CaptureState.BROWSER_LAUNCHING)
        async with session_factory(request.viewport, settings) as session:
            progress.advance(CaptureState.NAVIGATING)
            await session.navigate(request.url)

            progress.advance(CaptureState.WAITING)
            steps = build_stability_steps(settings, (request.scroll_x, request.scroll_y))
            outcomes = await run_wait_steps(session.page, steps, grace_ms=settings.wait_grace_ms)
            skipped = [outcome.name for outcome in outcomes if not outcome.completed]
            if skipped:
                logger.info("Capturing despite incomplete waits: %s", ", ".join(skipped))

            progress.advance(CaptureState.CAPTURING)
            png = await session.capture()

            center = resolve_marker_center(request, request.viewport_width, request.viewport_height)
            if center is not None:
                progress.advance(CaptureState.ANNOTATING)
                logger.info("Marker at x=%s y=%s from %s", center.x, center.y, center.source)
                png = await asyncio.to_thread(annotate_png, png, center)

            progress.advance(CaptureState.ENCODING)
            result = success_result(png)
        progress.advance(CaptureState.DONE)
    except CaptureError as exc:
        _mark_failed(progress)
        logger.warning("Capture failed (%s): %s", exc.kind, exc.message)
        return failure_result(exc)
    except Exception as exc:
        _mark_failed(progress)
        logger.exception("Capture failed unexpectedly", exc_info=exc)
        return failure_result(CaptureFailure(f"Capture failed unexpectedly: {exc}"))
    finally:
        logger.info("Capture ended: state=%s", progress.state.value)
    return result


def _mark_failed(progress: CaptureProgress) -> None:
    # A caller may hand in a progress that already reached a terminal state.
    if not progress.finished:
        progress.fail()
