"""
tests.test_logging

Identity assertions never reach a log line.
"""

from __future__ import annotations

import json

from portfolio_api.observability.logging import SENSITIVE_KEYS, _redact, _tracebacks

RAW_HEADER = "eyJ1c2VySWQiOiAidS0xIn0="


def test_sensitive_keys_are_redacted() -> None:
    processor = _redact(SENSITIVE_KEYS | {"x-custom-principal"})
    event = processor(
        None,
        "info",
        {
            "event": "request",
            "X-MS-CLIENT-PRINCIPAL": RAW_HEADER,
            "x-custom-principal": "abc",
            "path": "/api/manage",
        },
    )

    assert event["X-MS-CLIENT-PRINCIPAL"] == "[redacted]"
    assert event["x-custom-principal"] == "[redacted]"
    assert event["path"] == "/api/manage"


def _decode(raw: str) -> None:
    raise ValueError("cannot decode header")


def test_tracebacks_omit_frame_locals() -> None:
    try:
        _decode(RAW_HEADER)
    except ValueError as e:
        exc = e

    event = _tracebacks(None, "error", {"event": "unhandled_exception", "exc_info": exc})

    frames = [f for stack in event["exception"] for f in stack["frames"]]
    assert frames
    assert all(not f.get("locals") for f in frames)
    assert RAW_HEADER not in json.dumps(event, default=str)


# --- Module Notes -----------------------------------------------------------
# The traceback processor is exercised directly; the global structlog config caches
# loggers on first use, which makes capturing rendered output per test unreliable.
