"""Chat forwarding service.

Turns a validated ChatRequest into a single upstream chat-completion call:
- resolves the upstream client (credential checked per request)
- applies server defaults for fields the client left out
- returns the first completion's content

No retries are attempted; upstream failures propagate as typed LLMAppErrors.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from chat_proxy.adapters.llm.base import AbstractLLMClient
from chat_proxy.core.config import LLMSettings
from chat_proxy.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamRequest:
    """Fully-resolved parameters of one upstream call."""

    model: str
    max_tokens: int
    temperature: float


def resolve_upstream_request(request: ChatRequest, llm_settings: LLMSettings) -> UpstreamRequest:
    """Fill in defaults for the optional request fields.

    A field counts as absent only when it is missing or null; ``0`` for
    temperature or max_tokens is forwarded as-is.

    Args:
        request: Validated inbound request.
        llm_settings: Upstream defaults.

    Returns:
        UpstreamRequest with every parameter set.
    """
    model = llm_settings.model
    if llm_settings.allow_model_override and request.model is not None:
        model = request.model

    max_tokens = llm_settings.default_max_tokens
    if request.max_tokens is not None:
        max_tokens = request.max_tokens

    temperature = llm_settings.default_temperature
    if request.temperature is not None:
        temperature = request.temperature

    return UpstreamRequest(model=model, max_tokens=max_tokens, temperature=temperature)


class ChatService:
    """Forwards chat requests to the upstream provider.

    Attributes:
        llm_settings: Upstream settings for the current request.
        llm_factory: Builds the upstream client from settings; raises
            ConfigurationAppError when no credential is configured.
    """

    def __init__(
        self,
        llm_settings: LLMSettings,
        llm_factory: Callable[[LLMSettings], AbstractLLMClient],
    ) -> None:
        self.llm_settings = llm_settings
        self.llm_factory = llm_factory

    async def forward(self, request: ChatRequest) -> str:
        """Send the request upstream and return the assistant content.

        Args:
            request: Validated inbound request.

        Returns:
            Content of the first completion choice.

        Raises:
            ConfigurationAppError: If the upstream credential is missing.
            UpstreamAppError: If the upstream answered with an error status.
            UpstreamUnreachableAppError: If the upstream could not be reached.
        """
        # Credential is checked before any parameter resolution or I/O
        llm = self.llm_factory(self.llm_settings)

        upstream = resolve_upstream_request(request, self.llm_settings)
        logger.info(
            "chat.forwarding",
            extra={
                "model": upstream.model,
                "max_tokens": upstream.max_tokens,
                "temperature": upstream.temperature,
                "message_count": len(request.messages),
            },
        )

        content = await llm.complete_chat(
            request.messages,
            model=upstream.model,
            max_tokens=upstream.max_tokens,
            temperature=upstream.temperature,
        )

        logger.info(
            "chat.completed",
            extra={"model": upstream.model, "content_chars": len(content)},
        )
        return content
