from __future__ import annotations

import asyncio
import io
from contextlib import asynccontextmanager
from typing import Any

from PIL import Image

from markupcapture.browser_session import BrowserSession
from markupcapture.config import CaptureSettings

FAST_SETTINGS = CaptureSettings(
    network_idle_timeout_ms=20,
    ready_state_timeout_ms=20,
    paint_settle_ms=0,
    content_root_timeout_ms=20,
    image_timeout_ms=20,
    images_total_timeout_ms=20,
    animation_settle_ms=0,
    scroll_settle_ms=0,
    wait_grace_ms=30,
)


def make_png(width: int, height: int, color: tuple[int, int, int] = (255, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, status: int = 200) -> None:
        self.status = status


class FakePage:
    def __init__(
        self,
        viewport: tuple[int, int] = (800, 600),
        *,
        goto_error: Exception | None = None,
        status: int = 200,
        hang: set[str] | None = None,
        errors: dict[str, Exception] | None = None,
        screenshot_size: tuple[int, int] | None = None,
    ) -> None:
        self.viewport = viewport
        self.goto_error = goto_error
        self.status = status
        self.hang = hang or set()
        self.errors = errors or {}
        self.screenshot_size = screenshot_size
        self.calls: list[tuple[str, Any]] = []

    async def _step(self, name: str, detail: Any = None) -> None:
        self.calls.append((name, detail))
        if name in self.errors:
            raise self.errors[name]
        if name in self.hang:
            await asyncio.sleep(3600)

    def called(self, name: str) -> bool:
        return any(call == name for call, _ in self.calls)

    async def goto(self, url: str, *, wait_until: str, timeout: int) -> FakeResponse:
        self.calls.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error
        return FakeResponse(self.status)

    async def wait_for_load_state(self, state: str, *, timeout: int) -> None:
        await self._step("wait_for_load_state", state)

    async def wait_for_function(self, script: str, *, timeout: int) -> None:
        await self._step("wait_for_function", script)

    async def wait_for_timeout(self, timeout: int) -> None:
        await self._step("wait_for_timeout", timeout)

    async def wait_for_selector(self, selector: str, *, state: str, timeout: int) -> None:
        await self._step("wait_for_selector", selector)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "scrollTo" in script:
            await self._step("scroll", arg)
            return {"sx": arg["x"], "sy": arg["y"]}
        await self._step("evaluate", arg)
        return 0

    async def screenshot(self, *, type: str, full_page: bool) -> bytes:
        self.calls.append(("screenshot", (type, full_page)))
        width, height = self.screenshot_size or self.viewport
        return make_png(width, height)


class FakeSessionFactory:
    def __init__(self, page: FakePage | None = None) -> None:
        self.page = page or FakePage()
        self.opened = 0
        self.closed = 0
        self.viewports: list[tuple[int, int]] = []

    @asynccontextmanager
    async def __call__(self, viewport: tuple[int, int], settings: CaptureSettings):
        self.opened += 1
        self.viewports.append(viewport)
        if self.page.screenshot_size is None:
            self.page.viewport = viewport
        try:
            yield BrowserSession(self.page, viewport, settings)
        finally:
            self.closed += 1
