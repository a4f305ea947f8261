"""Request body parsing and validation for the chat endpoint."""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request
from pydantic import ValidationError

from chat_proxy.core.errors import ValidationAppError
from chat_proxy.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {token}")


async def read_json_body(request: Request) -> Any:
    """Read and decode the request body as JSON.

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected as they are not
    part of JSON and cannot be forwarded upstream.

    Args:
        request: Incoming FastAPI request.

    Returns:
        The decoded JSON value (any JSON type).

    Raises:
        ValidationAppError: If the body is empty or not valid JSON.
    """
    raw = await request.body()
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        logger.warning(
            "payload_validation.invalid_json",
            extra={"body_bytes": len(raw), "error_msg": str(exc)},
        )
        raise ValidationAppError(
            code="invalid_json",
            message="Invalid JSON",
        ) from exc


def parse_chat_request(body: Any) -> ChatRequest:
    """Validate a decoded body into a ChatRequest.

    ``messages`` is checked first and on its own so that a missing or
    non-array value always yields the same error regardless of other fields.

    Args:
        body: Decoded JSON body.

    Returns:
        ChatRequest ready for forwarding.

    Raises:
        ValidationAppError: If ``messages`` is not an array or an optional
            field has the wrong type.
    """
    if not isinstance(body, dict) or not isinstance(body.get("messages"), list):
        logger.warning(
            "payload_validation.messages_missing",
            extra={"body_type": type(body).__name__},
        )
        raise ValidationAppError(
            code="messages_required",
            message="messages array required",
        )

    try:
        return ChatRequest.model_validate(body)
    except ValidationError as exc:
        first_error = exc.errors()[0]
        field = ".".join(str(part) for part in first_error.get("loc", ())) or "body"
        logger.warning(
            "payload_validation.invalid_field",
            extra={"field": field, "error_type": first_error.get("type")},
        )
        raise ValidationAppError(
            code="invalid_field",
            message=f"Invalid field: {field}",
            details={"field": field},
        ) from exc
