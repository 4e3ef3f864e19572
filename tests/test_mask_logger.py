"""Tests for the leveled logger and the engine's log events. No raw PII may reach a log."""

import logging

import pytest

from pii_detection.pii_patterns import Policy
from pii_masking.errors import ResourceExhaustedError
from pii_masking.pii_masker import PiiMasker
from utils.mask_logger import LOGGER_NAME, TRACE, LogLevel, MaskLogger, coerce_log_level


def _collecting_sink():
    events = []

    def sink(level, message):
        events.append((level, message))

    return sink, events


def test_events_above_threshold_are_dropped():
    sink, events = _collecting_sink()
    logger = MaskLogger(sink, LogLevel.WARN)

    logger.debug("hidden")
    logger.info("hidden")
    logger.warn("shown")
    logger.fatal("shown too")

    assert [level for level, _ in events] == [LogLevel.WARN, LogLevel.FATAL]


def test_messages_are_prefixed_with_level_and_logger_name():
    sink, events = _collecting_sink()
    MaskLogger(sink, LogLevel.ALL).trace("hello")

    assert events == [(LogLevel.TRACE, "[trace] [pii_masking] hello")]


def test_off_silences_everything():
    sink, events = _collecting_sink()
    logger = MaskLogger(sink, LogLevel.OFF)

    logger.fatal("x")
    logger.error("x")

    assert events == []
    assert not logger.enabled_for(LogLevel.FATAL)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("debug", LogLevel.DEBUG),
        ("WARNING", LogLevel.WARN),
        (" all ", LogLevel.ALL),
        (400, LogLevel.INFO),
        (LogLevel.TRACE, LogLevel.TRACE),
    ],
)
def test_coerce_log_level(raw, expected):
    assert coerce_log_level(raw) is expected


@pytest.mark.parametrize("raw", ["loud", 401, True, None])
def test_coerce_log_level_rejects_unknown(raw):
    with pytest.raises(ValueError):
        coerce_log_level(raw)


def test_default_sink_forwards_to_stdlib_logging(caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    masker = PiiMasker(Policy.STRICT, log_level="debug")

    masker.mask({"user": {"password": "hunter2"}})

    messages = [r.getMessage() for r in caplog.records if r.name == LOGGER_NAME]
    assert any("user.password" in m and "key: password" in m for m in messages)
    assert all(r.levelno == logging.DEBUG for r in caplog.records if r.name == LOGGER_NAME)


def test_engine_logs_key_and_value_matches_with_paths():
    sink, events = _collecting_sink()
    masker = PiiMasker(Policy.STRICT, logger=sink, log_level=LogLevel.DEBUG, redact_fields=["nickname"])

    masker.mask(
        {
            "user": {
                "contacts": ["x", "y", "john@example.com"],
                "apiKey": "abc",
                "nickname": "johnny",
            }
        }
    )

    detections = [m for level, m in events if "detected pii" in m]
    assert detections == [
        "[debug] [pii_masking] detected pii on object path: user.contacts[2] value: email",
        "[debug] [pii_masking] detected pii on object path: user.apiKey key: apikey",
        "[debug] [pii_masking] detected pii on object path: user.nickname override: redact_fields",
    ]
    for _, message in events:
        assert "john@example.com" not in message
        assert "johnny" not in message


def test_engine_is_quiet_at_default_level():
    sink, events = _collecting_sink()
    masker = PiiMasker(Policy.PERMISSIVE, logger=sink)

    masker.mask({"email": "a@b.co", "ip": "10.0.0.1"})

    assert events == []


def test_engine_logs_error_when_traversal_aborts():
    sink, events = _collecting_sink()
    masker = PiiMasker(Policy.STRICT, logger=sink, max_depth=3)
    node = {}
    node["next"] = node

    with pytest.raises(ResourceExhaustedError):
        masker.mask(node)

    assert [level for level, _ in events] == [LogLevel.ERROR]
    assert "next.next.next" in events[0][1]


def test_default_sink_sends_trace_below_debug(caplog):
    caplog.set_level(TRACE, logger=LOGGER_NAME)
    masker = PiiMasker(Policy.STRICT, log_level="trace", preserve_fields=["email"])

    masker.mask({"email": "a@b.co"})

    levels = {r.levelno for r in caplog.records if r.name == LOGGER_NAME}
    assert TRACE in levels
    assert TRACE < logging.DEBUG
