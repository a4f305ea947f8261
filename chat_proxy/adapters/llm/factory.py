"""Factory pattern for creating LLM client instances."""

import logging

from chat_proxy.adapters.llm.base import AbstractLLMClient
from chat_proxy.adapters.llm.openai_client import OpenAIClient
from chat_proxy.core.config import LLMSettings
from chat_proxy.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

MISCONFIGURED_MESSAGE = "Server misconfigured"

_client: AbstractLLMClient | None = None
_client_config: tuple[str, str, str | None, float] | None = None


def create_llm_client(llm_settings: LLMSettings) -> AbstractLLMClient:
    """Return a client for the configured provider.

    The client is cached so the underlying HTTP connection pool is reused
    across requests; it is rebuilt whenever its settings change.

    Args:
        llm_settings: Upstream settings read for the current request.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ConfigurationAppError: If no credential is configured or the provider
            is unknown.
    """
    global _client, _client_config

    provider = llm_settings.provider.lower()

    if provider != "openai":
        logger.error("llm.unknown_provider", extra={"provider": provider})
        raise ConfigurationAppError(
            code="llm_unknown_provider",
            message=MISCONFIGURED_MESSAGE,
            details={"hint": f"Unknown LLM provider '{provider}'. Supported providers: openai"},
        )

    if not llm_settings.api_key:
        logger.error("llm.credential_missing", extra={"provider": provider})
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message=MISCONFIGURED_MESSAGE,
            details={"hint": "Set LLM_API_KEY or OPENAI_API_KEY"},
        )

    config = (
        provider,
        llm_settings.api_key,
        llm_settings.base_url,
        llm_settings.timeout_seconds,
    )
    if _client is None or _client_config != config:
        _client = OpenAIClient(
            api_key=llm_settings.api_key,
            base_url=llm_settings.base_url,
            timeout_seconds=llm_settings.timeout_seconds,
        )
        _client_config = config

    return _client
