from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence

from playwright.async_api import Error as PlaywrightError

from .config import CaptureSettings
from .errors import RenderTimeout

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger("markupcapture.capture")

WaitOperation = Callable[["Page", int], Awaitable[Any]]

READY_STATE_COMPLETE_SCRIPT = "() => document.readyState === 'complete'"

WAIT_FOR_IMAGES_SCRIPT = """
async (perImageTimeoutMs) => {
  const images = Array.from(document.querySelectorAll('img'));
  await Promise.all(
    images.map((img) => {
      if (img.complete) {
        return Promise.resolve();
      }
      return new Promise((resolve) => {
        img.addEventListener('load', resolve, { once: true });
        img.addEventListener('error', resolve, { once: true });
        setTimeout(resolve, perImageTimeoutMs);
      });
    })
  );
  return images.length;
}
"""

SCROLL_SCRIPT = "({x, y}) => { window.scrollTo(x, y); return { sx: window.scrollX, sy: window.scrollY }; }"


class TimeoutPolicy(Enum):
    IGNORE = "ignore"
    WARN = "warn"


@dataclass(frozen=True, slots=True)
class WaitStep:
    name: str
    operation: WaitOperation
    timeout_ms: int
    policy: TimeoutPolicy = TimeoutPolicy.WARN


@dataclass(frozen=True, slots=True)
class WaitOutcome:
    name: str
    completed: bool
    elapsed_ms: int
    timeout: RenderTimeout | None = None


async def run_wait_steps(
    page: Page,
    steps: Sequence[WaitStep],
    *,
    grace_ms: int = 1_000,
) -> list[WaitOutcome]:
    """Run each wait in order. No step can abort the capture.

    Every step is bounded by its own budget plus ``grace_ms``. A step that runs
    out of time, or that the page rejects, is recorded as a ``RenderTimeout``
    on its outcome and the next step starts.
    """
    outcomes: list[WaitOutcome] = []
    for step in steps:
        started = time.monotonic()
        timeout: RenderTimeout | None = None
        try:
            await asyncio.wait_for(
                step.operation(page, step.timeout_ms),
                timeout=(step.timeout_ms + grace_ms) / 1000,
            )
        except (asyncio.TimeoutError, PlaywrightError) as exc:
            detail = "" if isinstance(exc, asyncio.TimeoutError) else _first_line(exc)
            timeout = RenderTimeout(step.name, step.timeout_ms, detail)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        if timeout is None:
            logger.debug("Wait step %s finished in %sms", step.name, elapsed_ms)
        elif step.policy is TimeoutPolicy.WARN:
            logger.warning("%s; continuing with capture.", timeout.message)
        else:
            logger.debug("%s; ignored.", timeout.message)
        outcomes.append(
            WaitOutcome(name=step.name, completed=timeout is None, elapsed_ms=elapsed_ms, timeout=timeout)
        )
    return outcomes


def build_stability_steps(
    settings: CaptureSettings,
    scroll: tuple[int, int] = (0, 0),
) -> list[WaitStep]:
    steps = [
        WaitStep("network-idle", _wait_network_idle, settings.network_idle_timeout_ms),
        WaitStep("ready-state", _wait_ready_state, settings.ready_state_timeout_ms),
        WaitStep("paint-settle", _settle, settings.paint_settle_ms, TimeoutPolicy.IGNORE),
        WaitStep(
            "content-root",
            _content_root_waiter(settings.content_root_selector),
            settings.content_root_timeout_ms,
        ),
        WaitStep("images", _images_waiter(settings.image_timeout_ms), settings.images_total_timeout_ms),
        WaitStep("animation-settle", _settle, settings.animation_settle_ms, TimeoutPolicy.IGNORE),
    ]
    scroll_x, scroll_y = scroll
    if scroll_x > 0 or scroll_y > 0:
        steps.append(WaitStep("scroll", _scroll_waiter(scroll_x, scroll_y), settings.scroll_settle_ms))
    return steps


async def _wait_network_idle(page: Page, timeout_ms: int) -> None:
    await page.wait_for_load_state("networkidle", timeout=timeout_ms)


async def _wait_ready_state(page: Page, timeout_ms: int) -> None:
    await page.wait_for_function(READY_STATE_COMPLETE_SCRIPT, timeout=timeout_ms)


async def _settle(page: Page, duration_ms: int) -> None:
    await page.wait_for_timeout(duration_ms)


def _content_root_waiter(selector: str) -> WaitOperation:
    async def _wait(page: Page, timeout_ms: int) -> None:
        await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)

    return _wait


def _images_waiter(per_image_timeout_ms: int) -> WaitOperation:
    # The stage budget is the step timeout; each image also gets its own cap.
    async def _wait(page: Page, _timeout_ms: int) -> None:
        count = await page.evaluate(WAIT_FOR_IMAGES_SCRIPT, per_image_timeout_ms)
        logger.debug("Waited for %s images", count)

    return _wait


def _scroll_waiter(scroll_x: int, scroll_y: int) -> WaitOperation:
    async def _wait(page: Page, settle_ms: int) -> None:
        position = await page.evaluate(SCROLL_SCRIPT, {"x": scroll_x, "y": scroll_y})
        logger.info("Scrolled to x=%s y=%s (requested %s,%s)", *_scroll_position(position), scroll_x, scroll_y)
        await page.wait_for_timeout(settle_ms)

    return _wait


def _scroll_position(position: Any) -> tuple[Any, Any]:
    if isinstance(position, dict):
        return position.get("sx", "-"), position.get("sy", "-")
    return "-", "-"


def _first_line(exc: Exception) -> str:
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else type(exc).__name__
