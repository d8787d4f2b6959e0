"""Runtime configuration defaults for the ordering client."""

from __future__ import annotations

import os

API_BASE_URL = "http://localhost:3030"
REQUEST_TIMEOUT_SECONDS = 10.0
POLL_INTERVAL_SECONDS = 5.0
DEBUG_LOG_PATH = "/tmp/tableorder-debug.log"
CURRENCY_SYMBOL = "₦"

_API_BASE_URL_ENV = "TABLEORDER_API_BASE_URL"
_REQUEST_TIMEOUT_ENV = "TABLEORDER_REQUEST_TIMEOUT"
_POLL_INTERVAL_ENV = "TABLEORDER_POLL_INTERVAL"
_DEBUG_LOG_PATH_ENV = "TABLEORDER_DEBUG_LOG"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def resolve_api_base_url() -> str:
    """Return the collaborator base URL, honouring TABLEORDER_API_BASE_URL."""
    override = os.environ.get(_API_BASE_URL_ENV, "").strip()
    return (override or API_BASE_URL).rstrip("/")


def resolve_request_timeout() -> float:
    return _env_float(_REQUEST_TIMEOUT_ENV, REQUEST_TIMEOUT_SECONDS)


def resolve_poll_interval() -> float:
    return _env_float(_POLL_INTERVAL_ENV, POLL_INTERVAL_SECONDS)


def resolve_debug_log_path() -> str:
    return os.environ.get(_DEBUG_LOG_PATH_ENV, "").strip() or DEBUG_LOG_PATH
