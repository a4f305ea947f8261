"""OpenAI LLM client adapter."""

import logging
from typing import Any

from openai import APIStatusError, AsyncOpenAI

from chat_proxy.adapters.llm.base import AbstractLLMClient
from chat_proxy.core.errors import UpstreamAppError, UpstreamUnreachableAppError

logger = logging.getLogger(__name__)

UNREACHABLE_MESSAGE = "Failed to reach AI service"


def extract_error_message(exc: APIStatusError) -> str:
    """Pull the provider's error message out of a non-success response.

    Only ``{"error": {"message": ...}}`` bodies are trusted. ``exc.body`` is
    not used because the SDK unwraps that envelope when present and passes
    any other body through unchanged.

    Args:
        exc: Status error raised by the OpenAI SDK.

    Returns:
        The upstream ``error.message``, or a generic message naming the status.
    """
    try:
        payload = exc.response.json()
    except ValueError:
        payload = None
    error = payload.get("error") if isinstance(payload, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return f"OpenAI error: {exc.status_code}"


class OpenAIClient(AbstractLLMClient):
    """Client for calling OpenAI chat completions.

    Uses the official OpenAI Python SDK with async support. SDK retries are
    disabled: every upstream failure is surfaced to the caller immediately.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def complete_chat(
        self,
        messages: list[Any],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Forward a conversation to OpenAI and return the first choice's content.

        Args:
            messages: Conversation forwarded verbatim.
            model: Model name (e.g., "gpt-4o-mini").
            max_tokens: Completion token budget.
            temperature: Sampling temperature.

        Returns:
            str: Assistant content (empty string when the model returned none).

        Raises:
            UpstreamAppError: If OpenAI answered with a non-success status.
            UpstreamUnreachableAppError: On transport failure, timeout, or a
                success response without choices.
        """
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
            content = response.choices[0].message.content
        except APIStatusError as exc:
            logger.warning(
                "llm.upstream_error",
                extra={"http_status": exc.status_code, "model": model},
            )
            raise UpstreamAppError(
                code="upstream_error",
                message=extract_error_message(exc),
                details={"http_status": exc.status_code, "model": model},
                upstream_status=exc.status_code,
            ) from exc
        except Exception as exc:
            # Transport errors are logged, never returned to the client.
            logger.error(
                "llm.upstream_unreachable",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc), "model": model},
            )
            raise UpstreamUnreachableAppError(
                code="upstream_unreachable",
                message=UNREACHABLE_MESSAGE,
                details={"error_type": type(exc).__name__, "model": model},
            ) from exc

        return content or ""
