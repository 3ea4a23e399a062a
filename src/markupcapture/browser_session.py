from __future__ import annotations

import io
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from PIL import Image, UnidentifiedImageError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import CaptureSettings
from .errors import CaptureFailure, NavigationFailure
from .runtime_checks import _is_closed_target_error, _is_missing_browser_error, describe_navigation_error

if TYPE_CHECKING:
    from playwright.async_api import Page, Route

logger = logging.getLogger("markupcapture.capture")


class BrowserSession:
    """A single page inside a browser owned by exactly one capture request."""

    def __init__(self, page: Page, viewport: tuple[int, int], settings: CaptureSettings) -> None:
        self.page = page
        self.viewport = viewport
        self.settings = settings

    async def navigate(self, url: str) -> None:
        timeout_ms = self.settings.navigation_timeout_ms
        try:
            response = await self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationFailure(f"Timed out after {timeout_ms}ms loading {url}") from exc
        except PlaywrightError as exc:
            raise NavigationFailure(describe_navigation_error(url, exc)) from exc

        if response is not None and self.settings.fail_on_http_error and response.status >= 400:
            raise NavigationFailure(f"{url} responded with HTTP {response.status}")
        logger.info(
            "Navigation finished: url=%s status=%s",
            url,
            response.status if response is not None else "-",
        )

    async def capture(self) -> bytes:
        try:
            png = await self.page.screenshot(type="png", full_page=False)
        except PlaywrightError as exc:
            if _is_closed_target_error(exc):
                raise CaptureFailure("Browser closed before the screenshot was taken.") from exc
            raise CaptureFailure(f"Screenshot failed: {exc}") from exc

        size = _png_size(png)
        if size != self.viewport:
            raise CaptureFailure(
                f"Screenshot is {size[0]}x{size[1]} but the viewport is {self.viewport[0]}x{self.viewport[1]}."
            )
        return png


async def _block_heavy_media(route: Route, blocked: tuple[str, ...]) -> None:
    try:
        if route.request.resource_type in blocked:
            await route.abort()
        else:
            await route.continue_()
    except PlaywrightError as exc:
        # Requests still in flight when the page closes cannot be routed.
        logger.debug("Could not route %s: %s", route.request.url, exc)


@asynccontextmanager
async def open_browser_session(
    viewport: tuple[int, int],
    settings: CaptureSettings,
) -> AsyncIterator[BrowserSession]:
    """Launch a dedicated headless Chromium and close it when the scope exits.

    The browser is never shared: every call starts its own Playwright driver
    and browser process, and both are torn down on success, on error and on
    timeout alike.
    """
    width, height = viewport
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(
                headless=True,
                args=settings.launch_args(),
                chromium_sandbox=not settings.container_mode,
            )
        except PlaywrightError as exc:
            if _is_missing_browser_error(exc):
                raise CaptureFailure("Chromium not installed. Run: python -m playwright install chromium") from exc
            raise CaptureFailure(f"Failed to launch headless Chromium: {exc}") from exc

        logger.info("Browser launched: viewport=%sx%s", width, height)
        try:
            context = await browser.new_context(
                viewport={"width": width, "height": height},
                device_scale_factor=1,
                user_agent=settings.user_agent,
                java_script_enabled=True,
            )
            page = await context.new_page()
            blocked = settings.blocked_resource_types
            if blocked:
                await page.route("**/*", lambda route: _block_heavy_media(route, blocked))
            yield BrowserSession(page, (width, height), settings)
        finally:
            try:
                await browser.close()
            except PlaywrightError as exc:
                logger.warning("Browser teardown failed: %s", exc)
            else:
                logger.info("Browser closed.")


def _png_size(png: bytes) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(png)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as exc:
        raise CaptureFailure("Browser returned an unreadable screenshot.") from exc
