from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import CaptureSettings
from .encoder import decode_data_uri
from .logs import build_logger
from .pipeline import capture_markup


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="markupcapture", description="Annotated viewport screenshots.")
    commands = parser.add_subparsers(dest="command", required=True)

    capture = commands.add_parser("capture", help="Capture one URL and mark the clicked point.")
    capture.add_argument("url")
    capture.add_argument("--x", type=float, help="click x as percent of the viewport width")
    capture.add_argument("--y", type=float, help="click y as percent of the viewport height")
    capture.add_argument("--x-px", type=float, help="click x in pixels, overrides --x")
    capture.add_argument("--y-px", type=float, help="click y in pixels, overrides --y")
    capture.add_argument("--width", type=float, help="viewport width")
    capture.add_argument("--height", type=float, help="viewport height")
    capture.add_argument("--scroll-x", type=float, default=0)
    capture.add_argument("--scroll-y", type=float, default=0)
    capture.add_argument("--output", type=Path, help="write the PNG here instead of printing JSON")

    serve = commands.add_parser("serve", help="Serve POST /api/screenshot over HTTP.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def _payload_from_args(args: argparse.Namespace) -> dict[str, Any]:
    fields = {
        "url": args.url,
        "x": args.x,
        "y": args.y,
        "xPx": args.x_px,
        "yPx": args.y_px,
        "viewportWidth": args.width,
        "viewportHeight": args.height,
        "scrollX": args.scroll_x,
        "scrollY": args.scroll_y,
    }
    return {key: value for key, value in fields.items() if value is not None}


def _run_capture(args: argparse.Namespace, settings: CaptureSettings) -> int:
    result = asyncio.run(capture_markup(_payload_from_args(args), settings))
    if not result.success:
        print(f"[markupcapture] {result.error_type}: {result.error}", file=sys.stderr)
        return 1
    if args.output:
        args.output.write_bytes(decode_data_uri(result.screenshot or ""))
        print(f"[markupcapture] wrote {args.output}")
        return 0
    print(json.dumps(result.to_dict()))
    return 0


def _run_server(args: argparse.Namespace, settings: CaptureSettings) -> int:
    try:
        import uvicorn
    except ModuleNotFoundError as exc:
        if exc.name == "uvicorn":
            raise SystemExit("uvicorn is not installed. Activate the project venv and run `pip install -e .`.") from exc
        raise
    from .server import create_app

    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    if sys.version_info < (3, 11):
        raise SystemExit(
            "markupcapture requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    args = _build_parser().parse_args(argv)
    build_logger()
    settings = CaptureSettings.from_env()
    if args.command == "serve":
        return _run_server(args, settings)
    return _run_capture(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
