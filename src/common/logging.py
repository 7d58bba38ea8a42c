"""
Logging configuration helpers.
It centralizes process-wide logging setup and the handling of faults nothing else caught.
An uncaught exception leaves the process in an unknown state, so it is logged and the process exits.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from types import TracebackType

from src.common.settings import get_settings

_LOGGING_CONFIGURED = False
_FATAL_HOOKS_INSTALLED = False

logger = logging.getLogger(__name__)


def configure_logging(level_name: str | None = None) -> None:
    """Configure process-wide logging from environment settings."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    resolved = (level_name or get_settings().LOG_LEVEL).upper()
    level = getattr(logging, resolved, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    _LOGGING_CONFIGURED = True


def _terminate(exit_code: int = 1) -> None:
    logging.shutdown()
    os._exit(exit_code)


def _log_uncaught_exception(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType | None,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("Uncaught exception, shutting down", exc_info=(exc_type, exc_value, exc_traceback))
    _terminate()


def _log_uncaught_thread_exception(args: threading.ExceptHookArgs) -> None:
    if args.exc_type is SystemExit:
        return
    logger.critical(
        "Uncaught exception in thread %s, shutting down",
        getattr(args.thread, "name", "unknown"),
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),  # type: ignore[arg-type]
    )
    _terminate()


def install_fatal_exception_hooks() -> None:
    """Log and terminate on exceptions that escape every handler."""

    global _FATAL_HOOKS_INSTALLED
    if _FATAL_HOOKS_INSTALLED:
        return
    sys.excepthook = _log_uncaught_exception
    threading.excepthook = _log_uncaught_thread_exception
    _FATAL_HOOKS_INSTALLED = True


def handle_event_loop_exception(loop: object, context: dict[str, object]) -> None:
    """asyncio loop exception handler: unhandled task failures are fatal."""

    exception = context.get("exception")
    message = context.get("message", "Unhandled exception in event loop")
    if isinstance(exception, BaseException):
        logger.critical("%s, shutting down", message, exc_info=exception)
    else:
        logger.critical("%s, shutting down", message)
    _terminate()
