"""Tests for the chat forwarding service."""

from unittest.mock import AsyncMock, Mock

import pytest

from chat_proxy.adapters.llm.base import AbstractLLMClient
from chat_proxy.core.config import LLMSettings
from chat_proxy.core.errors import ConfigurationAppError, UpstreamAppError
from chat_proxy.schemas.chat import ChatRequest
from chat_proxy.services.chat_service import ChatService, resolve_upstream_request

MESSAGES = [{"role": "user", "content": "Is this apartment a good deal?"}]


@pytest.fixture
def llm_settings() -> LLMSettings:
    return LLMSettings(
        api_key="test-key",
        model="gpt-4o-mini",
        default_max_tokens=1500,
        default_temperature=0.85,
        allow_model_override=True,
    )


@pytest.fixture
def mock_llm() -> Mock:
    llm = Mock(spec=AbstractLLMClient)
    llm.complete_chat = AsyncMock(return_value="hello")
    return llm


class TestResolveUpstreamRequest:
    def test_applies_defaults_when_fields_absent(self, llm_settings: LLMSettings) -> None:
        upstream = resolve_upstream_request(ChatRequest(messages=MESSAGES), llm_settings)

        assert upstream.model == "gpt-4o-mini"
        assert upstream.max_tokens == 1500
        assert upstream.temperature == 0.85

    def test_keeps_explicit_zero_values(self, llm_settings: LLMSettings) -> None:
        request = ChatRequest(messages=MESSAGES, temperature=0, max_tokens=0)

        upstream = resolve_upstream_request(request, llm_settings)

        assert upstream.temperature == 0
        assert upstream.max_tokens == 0

    def test_null_counts_as_absent(self, llm_settings: LLMSettings) -> None:
        request = ChatRequest.model_validate(
            {"messages": MESSAGES, "temperature": None, "max_tokens": None, "model": None}
        )

        upstream = resolve_upstream_request(request, llm_settings)

        assert upstream.temperature == 0.85
        assert upstream.max_tokens == 1500
        assert upstream.model == "gpt-4o-mini"

    def test_request_values_override_defaults(self, llm_settings: LLMSettings) -> None:
        request = ChatRequest(messages=MESSAGES, model="gpt-4o", max_tokens=42, temperature=1.3)

        upstream = resolve_upstream_request(request, llm_settings)

        assert upstream.model == "gpt-4o"
        assert upstream.max_tokens == 42
        assert upstream.temperature == 1.3

    def test_model_override_can_be_disabled(self, llm_settings: LLMSettings) -> None:
        llm_settings.allow_model_override = False

        upstream = resolve_upstream_request(ChatRequest(messages=MESSAGES, model="gpt-4o"), llm_settings)

        assert upstream.model == "gpt-4o-mini"


class TestChatService:
    @pytest.mark.asyncio
    async def test_forward_calls_upstream_with_resolved_parameters(
        self, llm_settings: LLMSettings, mock_llm: Mock
    ) -> None:
        factory = Mock(return_value=mock_llm)
        service = ChatService(llm_settings=llm_settings, llm_factory=factory)

        content = await service.forward(ChatRequest(messages=MESSAGES, temperature=0))

        assert content == "hello"
        factory.assert_called_once_with(llm_settings)
        mock_llm.complete_chat.assert_awaited_once_with(
            MESSAGES,
            model="gpt-4o-mini",
            max_tokens=1500,
            temperature=0,
        )

    @pytest.mark.asyncio
    async def test_missing_credential_raises_before_upstream_call(self, mock_llm: Mock) -> None:
        def factory(_settings: LLMSettings) -> AbstractLLMClient:
            raise ConfigurationAppError(code="llm_missing_api_key", message="Server misconfigured")

        service = ChatService(llm_settings=LLMSettings(api_key=None), llm_factory=factory)

        with pytest.raises(ConfigurationAppError):
            await service.forward(ChatRequest(messages=MESSAGES))

        mock_llm.complete_chat.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_errors_propagate(self, llm_settings: LLMSettings, mock_llm: Mock) -> None:
        mock_llm.complete_chat.side_effect = UpstreamAppError(
            code="upstream_error", message="quota exceeded", upstream_status=429
        )
        service = ChatService(llm_settings=llm_settings, llm_factory=Mock(return_value=mock_llm))

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.forward(ChatRequest(messages=MESSAGES))

        assert exc_info.value.upstream_status == 429
        mock_llm.complete_chat.assert_awaited_once()
