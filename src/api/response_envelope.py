# This file builds response envelopes for API endpoints in a consistent format.
# It exists so clients always receive the same success flag, message, and data layout.
# The helpers return plain dictionaries that FastAPI serializes with its JSON encoder.
# This keeps endpoint functions focused on data retrieval instead of repetitive envelope assembly.

from __future__ import annotations

from typing import Any


def build_list_envelope(
    *,
    data: list[dict[str, Any]],
    pagination: dict[str, Any],
    message: str | None = None,
) -> dict[str, Any]:
    """Build standard list response envelope."""

    payload: dict[str, Any] = {"success": True}
    if message:
        payload["message"] = message
    payload["data"] = data
    payload["pagination"] = pagination
    return payload


def build_object_envelope(
    *,
    data: Any,
    message: str | None = None,
) -> dict[str, Any]:
    """Build standard non-list response envelope."""

    payload: dict[str, Any] = {"success": True}
    if message:
        payload["message"] = message
    payload["data"] = data
    return payload
