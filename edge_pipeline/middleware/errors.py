"""
Error responder module.

Single point of translation from a failure to the client-visible JSON
envelope. Reached from `ErrorHandlingMiddleware`, which catches anything the
inner stages raise, and from the FastAPI exception handlers for
`HTTPException` and request validation errors.
"""
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from ..observability.logger import StructuredLogger, get_logger
from .response import PipelineResponse

_fallback = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Internal Server Error"

MINIMAL_BODY = (
    b'{"error":{"code":500,"message":"Internal Server Error"},"success":false}'
)


class ErrorBody(BaseModel):
    code: int
    message: str
    details: Optional[Any] = None


class ErrorEnvelope(BaseModel):
    error: ErrorBody
    success: bool = False
    timestamp: str
    path: str


def iso_timestamp() -> str:
    """Current UTC time, millisecond precision, 'Z' suffix"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class ErrorResponder:
    """Builds error envelopes and logs the failures behind them"""

    def __init__(self, logger: Optional[StructuredLogger] = None, production: bool = False):
        self.logger = logger or get_logger()
        self.production = production

    def resolve_status(self, exc: BaseException) -> int:
        for attribute in ("status", "status_code"):
            value = getattr(exc, attribute, None)
            if isinstance(value, int) and not isinstance(value, bool) and 400 <= value <= 599:
                return value
        return status.HTTP_500_INTERNAL_SERVER_ERROR

    def resolve_message(self, exc: BaseException) -> str:
        message = getattr(exc, "message", None)
        if not message:
            detail = getattr(exc, "detail", None)
            message = detail if isinstance(detail, str) else None
        if not message:
            message = str(exc)
        return str(message) if message else DEFAULT_MESSAGE

    def log_failure(self, request: Request, exc: BaseException) -> None:
        try:
            self.logger.error(
                {
                    "error": repr(exc),
                    "stack": format_stack(exc),
                    "requestId": getattr(request.state, "request_id", None),
                    "path": request.url.path,
                    "method": request.method,
                    "url": str(request.url),
                },
                "Request error"
            )
        except Exception:
            _fallback.exception("Failed to log request error")

    def build_envelope(
        self,
        request: Request,
        exc: BaseException,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ) -> ErrorEnvelope:
        if not self.production:
            details = {"name": type(exc).__name__, "stack": format_stack(exc), **(details or {})}
        else:
            details = None

        return ErrorEnvelope(
            error=ErrorBody(
                code=status_code or self.resolve_status(exc),
                message=message or self.resolve_message(exc),
                details=details,
            ),
            timestamp=iso_timestamp(),
            path=request.url.path,
        )

    def render(
        self,
        request: Request,
        exc: BaseException,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ) -> Response:
        """Log the failure and return the envelope response; never raises"""
        self.log_failure(request, exc)
        try:
            envelope = self.build_envelope(request, exc, status_code, message, details)
            return JSONResponse(
                status_code=envelope.error.code,
                content=envelope.model_dump(mode="json", exclude_none=True),
            )
        except Exception:
            _fallback.exception("Failed to serialize error envelope")
            return Response(
                content=MINIMAL_BODY,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                media_type="application/json",
            )

    async def handle_http_exception(self, request: Request, exc: StarletteHTTPException) -> Response:
        response = self.render(request, exc, status_code=exc.status_code)
        if getattr(exc, "headers", None):
            response.headers.update(exc.headers)
        return response

    async def handle_validation_error(self, request: Request, exc: RequestValidationError) -> Response:
        return self.render(
            request,
            exc,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Request validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
        )


class ErrorHandlingMiddleware:
    """Catches failures from the inner stages and answers with the envelope"""

    def __init__(self, app: ASGIApp, responder: ErrorResponder):
        self.app = app
        self.responder = responder

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response = PipelineResponse.from_scope(scope, send)
        try:
            await self.app(scope, receive, response)
        except Exception as exc:
            request = Request(scope)
            if response.started:
                self.responder.log_failure(request, exc)
                return
            error_response = self.responder.render(request, exc)
            try:
                await error_response(scope, receive, response)
            except Exception:
                _fallback.exception("Failed to send error response")
