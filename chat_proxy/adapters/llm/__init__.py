"""LLM adapter layer - abstracts over upstream chat-completion providers."""

from chat_proxy.adapters.llm.base import AbstractLLMClient
from chat_proxy.adapters.llm.factory import create_llm_client
from chat_proxy.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]
