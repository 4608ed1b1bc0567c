"""Chat completion route.

Endpoint:
    POST /v1/chat/completions
        - Request: OpenAI chat completion body
        - Response: ``chat.completion`` JSON, or an SSE stream of
          ``chat.completion.chunk`` frames ending with ``data: [DONE]``
        - Rate Limited: Yes (``API_CHAT_RATE_LIMIT``, default 60/minute)

Request Flow:
    1. Bearer token resolved from the Authorization header or default pool
    2. Body parsed and validated (400 on invalid input)
    3. Mapped to domain messages and sampling parameters
    4. Executed via ChatCompletionUseCase
    5. Returned as JSON or as a StreamingResponse

Streaming:
    The upstream status is checked before the response starts, so upstream
    failures still produce a regular JSON error. Failures after that point
    are reported in-band as an error frame. The upstream response is
    released however the stream ends, including a caller that disconnects
    before the first frame.
"""

import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from inkeep_gateway.api.dependencies import (
    get_app_settings,
    get_chat_use_case,
    get_request_context,
    parse_chat_request,
    resolve_auth_token,
)
from inkeep_gateway.api.error_handlers import handle_route_errors
from inkeep_gateway.api.mappers import api_to_domain_messages, api_to_domain_params
from inkeep_gateway.api.middleware import chat_rate_limit, limiter
from inkeep_gateway.api.models import ErrorResponse
from inkeep_gateway.application.use_cases import ChatCompletionUseCase
from inkeep_gateway.core.config import Settings

router = APIRouter()

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


class ClosingStreamingResponse(StreamingResponse):
    """StreamingResponse that always closes its body iterator.

    Starlette never touches the iterator when sending the response start
    fails (caller already gone), which would leave the upstream response
    checked out of the connection pool.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            aclose = getattr(self.body_iterator, "aclose", None)
            if aclose is not None:
                await aclose()


@router.post(
    "/v1/chat/completions",
    tags=["Chat"],
    response_model=None,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
@limiter.limit(chat_rate_limit)
async def chat_completions(
    request: Request,
    use_case: ChatCompletionUseCase = Depends(get_chat_use_case),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> Response:
    """OpenAI-compatible chat completion endpoint.

    Raises:
        HTTPException: Rendered as an OpenAI error envelope:
            - 400: Invalid body or empty ``messages``
            - 500: Challenge, upstream or token pool failure
            - 503: Service not initialized
    """
    ctx = get_request_context(request)
    start_time = time.perf_counter()
    handle_error = handle_route_errors(ctx, "chat", start_time=start_time)

    try:
        token = resolve_auth_token(
            request.headers.get("authorization"), settings.auth.default_tokens
        )
        api_req = await parse_chat_request(request)
        result = await use_case.execute(
            api_to_domain_messages(api_req),
            api_to_domain_params(api_req),
            token=token,
            request_id=ctx.request_id,
            client_ip=ctx.client_ip,
        )
    except Exception as exc:
        handle_error(exc)

    if isinstance(result, dict):
        return JSONResponse(content=result)
    return ClosingStreamingResponse(
        result, media_type="text/event-stream", headers=SSE_HEADERS
    )
