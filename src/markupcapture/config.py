from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from typing import Mapping

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

ENV_PREFIX = "MARKUP_CAPTURE_"

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


@dataclass(frozen=True, slots=True)
class CaptureSettings:
    default_viewport_width: int = 1440
    default_viewport_height: int = 900
    min_viewport_size: int = 320
    window_size: tuple[int, int] = (1920, 1080)
    user_agent: str = DEFAULT_USER_AGENT
    container_mode: bool = False
    blocked_resource_types: tuple[str, ...] = ("media",)
    fail_on_http_error: bool = True

    navigation_timeout_ms: int = 45_000
    network_idle_timeout_ms: int = 15_000
    ready_state_timeout_ms: int = 10_000
    paint_settle_ms: int = 2_000
    content_root_selector: str = "body"
    content_root_timeout_ms: int = 5_000
    image_timeout_ms: int = 3_000
    images_total_timeout_ms: int = 15_000
    animation_settle_ms: int = 1_000
    scroll_settle_ms: int = 500
    wait_grace_ms: int = 1_000

    extra_launch_args: tuple[str, ...] = field(default_factory=tuple)

    def launch_args(self) -> list[str]:
        args = [
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
            f"--window-size={self.window_size[0]},{self.window_size[1]}",
        ]
        if self.container_mode:
            args[:0] = ["--no-sandbox", "--disable-setuid-sandbox"]
        args.extend(self.extra_launch_args)
        return args

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CaptureSettings":
        env = os.environ if environ is None else environ
        settings = cls()
        overrides: dict[str, object] = {}
        for item in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{item.name.upper()}")
            if raw is None or not raw.strip():
                continue
            current = getattr(settings, item.name)
            parsed = _parse_env_value(raw, current)
            if parsed is not None:
                overrides[item.name] = parsed
        return replace(settings, **overrides) if overrides else settings


def _parse_env_value(raw: str, current: object) -> object | None:
    value = raw.strip()
    if isinstance(current, bool):
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return None
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            return None
    if isinstance(current, tuple):
        parts = tuple(part.strip() for part in value.split(",") if part.strip())
        if current and all(isinstance(item, int) for item in current):
            try:
                return tuple(int(part) for part in parts)
            except ValueError:
                return None
        return parts
    return value
