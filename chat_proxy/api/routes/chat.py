from typing import Annotated

from fastapi import APIRouter, Depends, Request

from chat_proxy.adapters.llm.factory import create_llm_client
from chat_proxy.adapters.rate_limit.base import RateLimitResult
from chat_proxy.core.config import load_llm_settings, settings
from chat_proxy.core.errors import MethodNotAllowedAppError
from chat_proxy.core.payload_validation import parse_chat_request, read_json_body
from chat_proxy.core.rate_limit import enforce_rate_limit
from chat_proxy.schemas.chat import ChatResponse, ErrorResponse
from chat_proxy.services.chat_service import ChatService

router = APIRouter(tags=["Chat"])


def get_chat_service() -> ChatService:
    """Build the forwarding service with settings read for this request."""
    return ChatService(llm_settings=load_llm_settings(), llm_factory=create_llm_client)


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid JSON or missing messages array"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Server misconfigured"},
        502: {"model": ErrorResponse, "description": "Upstream AI service unreachable"},
    },
)
async def chat(
    request: Request,
    rate_limit: Annotated[RateLimitResult | None, Depends(enforce_rate_limit)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
) -> ChatResponse:
    """Forward a chat-completion request to the upstream AI service.

    The body is read after the rate limit check, so malformed requests still
    count against the caller's quota.

    Returns:
        ChatResponse: Assistant content and, when enabled, the remaining
            quota for the caller's window.
    """
    body = await read_json_body(request)
    chat_request = parse_chat_request(body)

    content = await chat_service.forward(chat_request)

    remaining = None
    if rate_limit is not None and settings.app.include_remaining:
        remaining = rate_limit.remaining

    return ChatResponse(content=content, remaining=remaining)


@router.api_route(
    "/chat",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def chat_method_not_allowed(request: Request) -> None:
    raise MethodNotAllowedAppError(
        code="method_not_allowed",
        message="Method not allowed",
        details={"method": request.method},
    )
