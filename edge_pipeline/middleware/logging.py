"""
Request/response logging middleware.

Implemented as pure ASGI middleware so the completion of the response body
can be observed directly, including streamed bodies, pipeline-terminated
preflights and responses written by the error handler.
"""
import logging
import secrets
import time
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from ..observability.logger import StructuredLogger, get_logger
from .headers import filter_headers
from .response import PipelineResponse

_fallback = logging.getLogger(__name__)

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_request_id(length: int = 11) -> str:
    """Random base-36 correlation id"""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def resolve_client_address(request: Request, trust_proxy: bool = False) -> str:
    """Best-effort caller address: proxy hop, then transport peer, then 'unknown'"""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def query_params(request: Request) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


def request_url(request: Request) -> str:
    """Path plus query string, as the client sent it"""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class RequestLoggerMiddleware:
    """Times every HTTP request and logs its start and completion"""

    def __init__(
        self,
        app: ASGIApp,
        logger: Optional[StructuredLogger] = None,
        header_name: str = "x-request-id",
        trust_proxy: bool = False
    ):
        self.app = app
        self.logger = logger or get_logger()
        self.header_name = header_name.lower()
        self.trust_proxy = trust_proxy

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request = Request(scope)
        request_id = request.headers.get(self.header_name) or generate_request_id()
        request.state.request_id = request_id

        response = PipelineResponse.from_scope(scope, send)
        response.set_header(self.header_name, request_id)
        response.on_finalize(
            lambda finished: self._log_response(request, request_id, start_time, finished)
        )

        self._log_request(request, request_id)
        try:
            await self.app(scope, receive, response)
        finally:
            response.finalize()

    def _log_request(self, request: Request, request_id: str) -> None:
        try:
            self.logger.debug(
                {
                    "type": "request",
                    "requestId": request_id,
                    "method": request.method,
                    "url": request_url(request),
                    "path": request.url.path,
                    "query": query_params(request),
                    "headers": filter_headers(request.headers),
                    "remoteAddress": resolve_client_address(request, self.trust_proxy),
                },
                "Request received"
            )
        except Exception:
            _fallback.exception("Failed to log request %s", request_id)

    def _log_response(
        self,
        request: Request,
        request_id: str,
        start_time: float,
        response: PipelineResponse
    ) -> None:
        try:
            response_time = round((time.perf_counter() - start_time) * 1000)
            status_code = response.status_code if response.started else 500
            log_data = {
                "type": "response",
                "requestId": request_id,
                "method": request.method,
                "url": request_url(request),
                "path": request.url.path,
                "status": status_code,
                "responseTime": response_time,
            }
            message = f"Response sent: {status_code} ({response_time}ms)"

            if status_code >= 500:
                self.logger.error(log_data, message)
            elif status_code >= 400:
                self.logger.warn(log_data, message)
            else:
                self.logger.info(log_data, message)
        except Exception:
            _fallback.exception("Failed to log response %s", request_id)
