# This test file validates the process-level handlers for faults nothing else caught.
# It exists to ensure such faults are logged at critical level before the process terminates.

from __future__ import annotations

import logging
import sys
import threading

import pytest

from src.common import logging as logging_module


@pytest.fixture
def terminations(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    calls: list[int] = []
    monkeypatch.setattr(logging_module, "_terminate", lambda exit_code=1: calls.append(exit_code))
    return calls


def test_uncaught_exception_is_logged_and_terminates(
    terminations: list[int], caplog: pytest.LogCaptureFixture
) -> None:
    error = RuntimeError("boom")
    with caplog.at_level(logging.CRITICAL):
        logging_module._log_uncaught_exception(RuntimeError, error, None)

    assert terminations == [1]
    assert "Uncaught exception" in caplog.text


def test_keyboard_interrupt_is_not_treated_as_fatal(
    terminations: list[int], monkeypatch: pytest.MonkeyPatch
) -> None:
    forwarded: list[type[BaseException]] = []
    monkeypatch.setattr(sys, "__excepthook__", lambda exc_type, *_: forwarded.append(exc_type))

    logging_module._log_uncaught_exception(KeyboardInterrupt, KeyboardInterrupt(), None)

    assert terminations == []
    assert forwarded == [KeyboardInterrupt]


def test_thread_exception_terminates(terminations: list[int]) -> None:
    args = threading.ExceptHookArgs([ValueError, ValueError("bad"), None, threading.current_thread()])

    logging_module._log_uncaught_thread_exception(args)

    assert terminations == [1]


def test_event_loop_failure_terminates(terminations: list[int], caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.CRITICAL):
        logging_module.handle_event_loop_exception(None, {"message": "Task exception was never retrieved"})

    assert terminations == [1]
    assert "Task exception was never retrieved" in caplog.text
