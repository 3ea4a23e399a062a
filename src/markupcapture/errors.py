from __future__ import annotations


class CaptureError(Exception):
    """Base class for every failure the capture pipeline reports to callers."""

    kind = "CaptureError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(CaptureError):
    kind = "InvalidInput"


class DetachedSurfaceError(InvalidInput):
    """The capture surface has no measurable width or height."""


class NavigationFailure(CaptureError):
    kind = "NavigationFailure"


class RenderTimeout(CaptureError):
    """A stability wait ran out of time. Recorded, never raised to callers."""

    kind = "RenderTimeout"

    def __init__(self, step: str, timeout_ms: int, detail: str = "") -> None:
        message = f"Wait step '{step}' exceeded {timeout_ms}ms"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.step = step
        self.timeout_ms = timeout_ms


class CaptureFailure(CaptureError):
    kind = "CaptureFailure"


class AnnotationFailure(CaptureError):
    kind = "AnnotationFailure"
