"""
Single-context middleware abstraction.

Policy evaluators in this package are written against one context object
`c` and a `next` coroutine, rather than against ASGI scopes and send
channels:

    async def evaluator(c: PolicyContext, next: Next) -> Optional[PolicyResult]

Returning a non-None result means the evaluator produced the response itself.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol


class ContextRequest(Protocol):
    method: str
    url: str

    def header(self, name: str) -> Optional[str]:
        ...


class ContextHeaders(Protocol):
    def get(self, name: str) -> Optional[str]:
        ...

    def set(self, name: str, value: str) -> None:
        ...

    def append(self, name: str, value: str) -> None:
        ...

    def delete(self, name: str) -> None:
        ...


class ContextResponse(Protocol):
    headers: ContextHeaders

    def status(self, code: int) -> Any:
        ...


class PolicyContext(Protocol):
    req: ContextRequest
    res: ContextResponse

    def header(self, name: str, value: str) -> Any:
        ...

    def status(self, code: int) -> Any:
        ...


@dataclass(frozen=True)
class PolicyResult:
    """Response produced by an evaluator that fully handled the request"""

    status: int
    status_text: str = ""


Next = Callable[[], Awaitable[None]]
PolicyEvaluator = Callable[[PolicyContext, Next], Awaitable[Optional[PolicyResult]]]
