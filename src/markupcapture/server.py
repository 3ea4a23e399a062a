from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import CaptureSettings
from .errors import InvalidInput
from .models import CaptureResult
from .pipeline import capture_markup

CaptureCallable = Callable[..., Awaitable[CaptureResult]]


class ScreenshotRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Numeric fields are forwarded as sent; parse_capture_request drops
    # booleans, strings and other non-numbers instead of coercing them.
    url: Optional[str] = None
    x: Any = None
    y: Any = None
    x_px: Any = Field(default=None, alias="xPx")
    y_px: Any = Field(default=None, alias="yPx")
    viewport_width: Any = Field(default=None, alias="viewportWidth")
    viewport_height: Any = Field(default=None, alias="viewportHeight")
    scroll_x: Any = Field(default=None, alias="scrollX")
    scroll_y: Any = Field(default=None, alias="scrollY")
    device_pixel_ratio: Any = Field(default=None, alias="devicePixelRatio")


class ScreenshotResponse(BaseModel):
    success: bool
    screenshot: Optional[str] = None
    error: Optional[str] = None
    errorType: Optional[str] = None


def create_app(
    settings: CaptureSettings | None = None,
    capture: CaptureCallable = capture_markup,
) -> FastAPI:
    settings = settings or CaptureSettings.from_env()
    app = FastAPI(title="markupcapture", version="0.1.0")

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request body: {location} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content=_failure_payload(InvalidInput(message)))

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.post("/api/screenshot", response_model=ScreenshotResponse, response_model_exclude_none=True)
    async def screenshot(body: ScreenshotRequest) -> JSONResponse:
        payload = body.model_dump(by_alias=True, exclude_none=True)
        result = await capture(payload, settings)
        if result.success:
            return JSONResponse(status_code=200, content=result.to_dict())
        status = 400 if result.error_type == InvalidInput.kind else 500
        return JSONResponse(status_code=status, content=result.to_dict())

    return app


def _failure_payload(error: InvalidInput) -> dict[str, Any]:
    return CaptureResult(success=False, error=error.message, error_type=error.kind).to_dict()
