from __future__ import annotations

import re

_MISSING_BROWSER_ERROR_HINTS = (
    "executable doesn't exist",
    "executable does not exist",
    "download new browsers",
    "playwright install",
    "could not find browser",
    "failed to launch chromium because executable",
)

_CLOSED_TARGET_ERROR_HINTS = (
    "has been closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "target closed",
)

_NET_ERROR_PATTERN = re.compile(r"net::(ERR_[A-Z0-9_]+)")

_NET_ERROR_MESSAGES = {
    "ERR_NAME_NOT_RESOLVED": "Could not resolve host",
    "ERR_CONNECTION_REFUSED": "Connection refused",
    "ERR_CONNECTION_RESET": "Connection reset",
    "ERR_CONNECTION_TIMED_OUT": "Connection timed out",
    "ERR_INTERNET_DISCONNECTED": "No network connection",
    "ERR_ADDRESS_UNREACHABLE": "Address unreachable",
    "ERR_CERT_AUTHORITY_INVALID": "Untrusted TLS certificate",
    "ERR_CERT_COMMON_NAME_INVALID": "TLS certificate does not match host",
    "ERR_CERT_DATE_INVALID": "TLS certificate expired or not yet valid",
    "ERR_SSL_PROTOCOL_ERROR": "TLS handshake failed",
    "ERR_TOO_MANY_REDIRECTS": "Too many redirects",
    "ERR_ABORTED": "Navigation aborted",
}


def _is_missing_browser_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(hint in message for hint in _MISSING_BROWSER_ERROR_HINTS)


def _is_closed_target_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(hint in message for hint in _CLOSED_TARGET_ERROR_HINTS)


def network_error_code(exc: Exception) -> str | None:
    match = _NET_ERROR_PATTERN.search(str(exc))
    return match.group(1) if match else None


def describe_navigation_error(url: str, exc: Exception) -> str:
    code = network_error_code(exc)
    if code:
        reason = _NET_ERROR_MESSAGES.get(code, "Network error")
        return f"{reason} while loading {url} ({code})"
    first_line = str(exc).strip().splitlines()[0] if str(exc).strip() else type(exc).__name__
    return f"Failed to load {url}: {first_line}"
