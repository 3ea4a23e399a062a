import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import markupcapture.browser_session as browser_session
from fakes import FAST_SETTINGS, FakePage
from markupcapture.browser_session import BrowserSession, _block_heavy_media, open_browser_session
from markupcapture.config import CaptureSettings
from markupcapture.errors import CaptureFailure, NavigationFailure


class _FakeRequest:
    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type
        self.url = f"https://example.com/asset.{resource_type}"


class _FakeRoute:
    def __init__(self, resource_type: str) -> None:
        self.request = _FakeRequest(resource_type)
        self.action = ""

    async def abort(self) -> None:
        self.action = "abort"

    async def continue_(self) -> None:
        self.action = "continue"


class _ClosedPageRoute(_FakeRoute):
    async def abort(self) -> None:
        raise PlaywrightError("Target page, context or browser has been closed")

    async def continue_(self) -> None:
        raise PlaywrightError("Target page, context or browser has been closed")


class _FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.options: dict = {}

    async def new_page(self) -> FakePage:
        return self.page


class _FakeBrowser:
    def __init__(self) -> None:
        self.page = FakePage()
        self.context = _FakeContext(self.page)
        self.closed = False
        self.routes: list[str] = []

        async def _route(pattern, handler) -> None:
            self.routes.append(pattern)

        self.page.route = _route

    async def new_context(self, **options) -> _FakeContext:
        self.context.options = options
        return self.context

    async def close(self) -> None:
        self.closed = True


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser, launch_error: Exception | None = None) -> None:
        self.browser = browser
        self.launch_error = launch_error
        self.launch_options: dict = {}

    async def launch(self, **options) -> _FakeBrowser:
        self.launch_options = options
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class _FakePlaywrightManager:
    def __init__(self, chromium: _FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_exc) -> None:
        self.stopped = True


def _install(monkeypatch, launch_error: Exception | None = None):
    browser = _FakeBrowser()
    manager = _FakePlaywrightManager(_FakeChromium(browser, launch_error))
    monkeypatch.setattr(browser_session, "async_playwright", lambda: manager)
    return manager, browser


def test_session_configures_viewport_scale_and_media_blocking(monkeypatch) -> None:
    manager, browser = _install(monkeypatch)

    async def _run() -> tuple[int, int]:
        async with open_browser_session((800, 600), CaptureSettings()) as session:
            return session.viewport

    assert asyncio.run(_run()) == (800, 600)
    assert browser.context.options["viewport"] == {"width": 800, "height": 600}
    assert browser.context.options["device_scale_factor"] == 1
    assert "Chrome/" in browser.context.options["user_agent"]
    assert browser.routes == ["**/*"]
    assert manager.chromium.launch_options["headless"] is True
    assert "--disable-gpu" in manager.chromium.launch_options["args"]
    assert browser.closed
    assert manager.stopped


def test_browser_is_closed_when_the_scope_raises(monkeypatch) -> None:
    manager, browser = _install(monkeypatch)

    async def _run() -> None:
        async with open_browser_session((800, 600), CaptureSettings()):
            raise NavigationFailure("boom")

    with pytest.raises(NavigationFailure):
        asyncio.run(_run())
    assert browser.closed
    assert manager.stopped


def test_missing_chromium_becomes_capture_failure_with_hint(monkeypatch) -> None:
    _install(monkeypatch, PlaywrightError("Executable doesn't exist at /ms-playwright/chromium"))

    async def _run() -> None:
        async with open_browser_session((800, 600), CaptureSettings()):
            pass

    with pytest.raises(CaptureFailure, match="playwright install chromium"):
        asyncio.run(_run())


def test_block_heavy_media_aborts_only_blocked_types() -> None:
    media = _FakeRoute("media")
    image = _FakeRoute("image")
    font = _FakeRoute("font")
    for route in (media, image, font):
        asyncio.run(_block_heavy_media(route, ("media",)))
    assert (media.action, image.action, font.action) == ("abort", "continue", "continue")


def test_block_heavy_media_tolerates_closed_page() -> None:
    for resource_type in ("media", "document"):
        asyncio.run(_block_heavy_media(_ClosedPageRoute(resource_type), ("media",)))


def test_navigate_maps_network_errors() -> None:
    page = FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nope.invalid/"))
    session = BrowserSession(page, (800, 600), FAST_SETTINGS)
    with pytest.raises(NavigationFailure, match="Could not resolve host"):
        asyncio.run(session.navigate("https://nope.invalid/"))


def test_navigate_maps_timeouts() -> None:
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 45000ms exceeded."))
    session = BrowserSession(page, (800, 600), CaptureSettings())
    with pytest.raises(NavigationFailure, match="Timed out after 45000ms"):
        asyncio.run(session.navigate("https://slow.example"))


def test_navigate_rejects_http_errors_unless_disabled() -> None:
    session = BrowserSession(FakePage(status=503), (800, 600), CaptureSettings())
    with pytest.raises(NavigationFailure, match="HTTP 503"):
        asyncio.run(session.navigate("https://example.com"))

    lenient = BrowserSession(FakePage(status=404), (800, 600), CaptureSettings(fail_on_http_error=False))
    asyncio.run(lenient.navigate("https://example.com"))


def test_capture_returns_viewport_png() -> None:
    page = FakePage((1024, 768))
    png = asyncio.run(BrowserSession(page, (1024, 768), CaptureSettings()).capture())
    assert png.startswith(b"\x89PNG")
    assert ("screenshot", ("png", False)) in page.calls


def test_capture_rejects_wrong_raster_size() -> None:
    page = FakePage((800, 600), screenshot_size=(1600, 1200))
    with pytest.raises(CaptureFailure, match="1600x1200"):
        asyncio.run(BrowserSession(page, (800, 600), CaptureSettings()).capture())


def test_capture_maps_engine_errors() -> None:
    page = FakePage()

    async def _broken(**_kwargs) -> bytes:
        raise PlaywrightError("Target page, context or browser has been closed")

    page.screenshot = _broken
    with pytest.raises(CaptureFailure, match="closed"):
        asyncio.run(BrowserSession(page, (800, 600), CaptureSettings()).capture())
