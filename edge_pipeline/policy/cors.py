"""
Cross-origin resource sharing policy evaluator.

Builds an evaluator for the single-context abstraction. For every request it
sets the allow-origin, credentials and expose headers; for OPTIONS requests
it also sets the preflight headers and answers with a 204 result instead of
calling `next`.
"""
from typing import Callable, Optional, Sequence, Union

from .context import Next, PolicyContext, PolicyEvaluator, PolicyResult

OriginMatcher = Callable[[str, PolicyContext], Optional[str]]
OriginOption = Union[str, Sequence[str], OriginMatcher]

DEFAULT_METHODS = ("GET", "HEAD", "PUT", "POST", "DELETE", "PATCH")


def _origin_matcher(origin: OriginOption) -> OriginMatcher:
    if isinstance(origin, str):
        if origin == "*":
            return lambda request_origin, c: "*"
        return lambda request_origin, c: origin if request_origin == origin else None
    if callable(origin):
        return origin
    allowed = frozenset(origin)
    return lambda request_origin, c: request_origin if request_origin in allowed else None


def cors(
    origin: OriginOption = "*",
    allow_methods: Sequence[str] = DEFAULT_METHODS,
    allow_headers: Sequence[str] = (),
    expose_headers: Sequence[str] = (),
    credentials: bool = False,
    max_age: Optional[int] = None
) -> PolicyEvaluator:
    """Return a CORS evaluator for the given policy"""
    find_allow_origin = _origin_matcher(origin)

    async def evaluate(c: PolicyContext, next: Next) -> Optional[PolicyResult]:
        headers = c.res.headers

        allow_origin = find_allow_origin(c.req.header("origin") or "", c)
        if allow_origin:
            headers.set("Access-Control-Allow-Origin", allow_origin)

        # An explicit origin makes the response vary by requester.
        if origin != "*":
            headers.set("Vary", c.req.header("vary") or "Origin")

        if credentials:
            headers.set("Access-Control-Allow-Credentials", "true")

        if expose_headers:
            headers.set("Access-Control-Expose-Headers", ",".join(expose_headers))

        if c.req.method == "OPTIONS":
            if max_age is not None:
                headers.set("Access-Control-Max-Age", str(max_age))

            if allow_methods:
                headers.set("Access-Control-Allow-Methods", ",".join(allow_methods))

            request_headers = list(allow_headers)
            if not request_headers:
                requested = c.req.header("access-control-request-headers")
                if requested:
                    request_headers = [h.strip() for h in requested.split(",") if h.strip()]
            if request_headers:
                headers.set("Access-Control-Allow-Headers", ",".join(request_headers))
                headers.append("Vary", "Access-Control-Request-Headers")

            headers.delete("Content-Length")
            headers.delete("Content-Type")
            return PolicyResult(status=204, status_text="No Content")

        await next()
        return None

    return evaluate
