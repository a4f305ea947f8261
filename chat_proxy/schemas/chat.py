"""Pydantic schemas for the chat proxy endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, StrictInt


class ChatRequest(BaseModel):
    """Inbound chat-completion request.

    Only ``messages`` is required. Optional fields left as None fall back to
    server defaults; explicit zeros are kept.
    """

    messages: list[Any] = Field(
        ...,
        description="Conversation as a list of {role, content} objects, forwarded verbatim.",
    )
    max_tokens: StrictInt | None = Field(
        default=None,
        description="Completion token budget (server default when omitted).",
    )
    temperature: float | None = Field(
        default=None,
        allow_inf_nan=False,
        description="Sampling temperature (server default when omitted; 0 is honoured).",
    )
    model: str | None = Field(
        default=None,
        description="Upstream model name, if the deployment allows overriding it.",
    )


class ChatResponse(BaseModel):
    """Reshaped upstream reply."""

    content: str = Field(..., description="Content of the first completion choice.")
    remaining: int | None = Field(
        default=None,
        description="Requests left for this client in the current rate limit window.",
    )


class ErrorResponse(BaseModel):
    """Error body returned for every failure."""

    error: str = Field(..., description="Human-readable error message.")
    resetIn: int | None = Field(
        default=None,
        description="Seconds until the rate limit window resets (429 only).",
    )
