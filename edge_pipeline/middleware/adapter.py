"""
Policy adapter middleware.

Runs a single-context policy evaluator inside the ASGI chain. A fresh
`ContextShim` is built for every request; its header and status setters
write straight onto the request's `PipelineResponse`, so whatever the
evaluator sets ends up on the response the downstream app produces.

The evaluator's `next` is a no-op: continuing the chain is the job of this
middleware, not of the evaluator, so only one evaluator runs per adapter.
"""
from typing import Optional

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from ..policy.context import PolicyEvaluator, PolicyResult
from .response import PipelineResponse


class ShimRequest:
    """Read-only request surface of the context"""

    def __init__(self, request: Request):
        self.raw = request
        self.method = request.method
        self.url = str(request.url)

    def header(self, name: str) -> Optional[str]:
        return self.raw.headers.get(name.lower())


class ShimHeaders:
    """Header surface forwarding onto the in-flight response"""

    def __init__(self, response: PipelineResponse):
        self._response = response

    def get(self, name: str) -> Optional[str]:
        return self._response.get_header(name)

    def set(self, name: str, value: str) -> None:
        self._response.set_header(name, value)

    def append(self, name: str, value: str) -> None:
        self._response.append_header(name, value)

    def delete(self, name: str) -> None:
        self._response.delete_header(name)


class ShimResponse:
    def __init__(self, context: "ContextShim", response: PipelineResponse):
        self._context = context
        self._response = response
        self.headers = ShimHeaders(response)

    def status(self, code: int) -> "ContextShim":
        self._response.set_status(code)
        return self._context

    def body(self, body) -> "ContextShim":
        return self._context


class ContextShim:
    """Single-object context handed to a policy evaluator"""

    def __init__(self, request: Request, response: PipelineResponse):
        self.req = ShimRequest(request)
        self.res = ShimResponse(self, response)

    def header(self, name: str, value: str) -> "ContextShim":
        self.res.headers.set(name, value)
        return self

    def status(self, code: int) -> "ContextShim":
        return self.res.status(code)


async def _continue() -> None:
    return None


class PolicyAdapterMiddleware:
    """Evaluates a policy for each HTTP request before the downstream app"""

    def __init__(self, app: ASGIApp, evaluator: PolicyEvaluator):
        self.app = app
        self.evaluator = evaluator

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        response = PipelineResponse.from_scope(scope, send)
        context = ContextShim(request, response)

        result: Optional[PolicyResult] = await self.evaluator(context, _continue)
        if result is not None and request.method == "OPTIONS":
            await response.end(204)
            return

        await self.app(scope, receive, response)
