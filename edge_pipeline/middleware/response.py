"""
In-flight response abstraction shared by the pipeline stages.

`PipelineResponse` wraps the ASGI `send` channel. Stages set headers and a
default status on it before the downstream app starts responding; those
header operations are applied to the `http.response.start` message when it
passes through. Completion is published through `on_finalize` callbacks,
which run exactly once: when the final body message is sent, or when
`finalize()` is called by whichever stage owns the response lifecycle.
"""
import logging
from typing import Callable, List, Optional, Tuple

from starlette.datastructures import MutableHeaders
from starlette.types import Message, Scope, Send

logger = logging.getLogger(__name__)

SCOPE_KEY = "edge_pipeline.response"

FinalizeCallback = Callable[["PipelineResponse"], None]


class PipelineResponse:
    """Send wrapper exposing header/status mutation and a finalize hook"""

    def __init__(self, send: Send):
        self._send = send
        self._header_ops: List[Tuple[str, str, Optional[str]]] = []
        self._callbacks: List[FinalizeCallback] = []
        self.default_status = 200
        self.status_code: Optional[int] = None
        self.started = False
        self.finalized = False

    @classmethod
    def from_scope(cls, scope: Scope, send: Send) -> "PipelineResponse":
        """Return the response already bound to this request, or bind a new one"""
        response = scope.get(SCOPE_KEY)
        if response is None:
            response = cls(send)
            scope[SCOPE_KEY] = response
        return response

    def set_header(self, name: str, value: str) -> "PipelineResponse":
        self._header_ops.append(("set", name, value))
        return self

    def append_header(self, name: str, value: str) -> "PipelineResponse":
        self._header_ops.append(("append", name, value))
        return self

    def delete_header(self, name: str) -> "PipelineResponse":
        self._header_ops.append(("delete", name, None))
        return self

    def get_header(self, name: str) -> Optional[str]:
        """Latest value a stage has set for `name`, if any"""
        value = None
        for op, op_name, op_value in self._header_ops:
            if op_name.lower() != name.lower():
                continue
            if op == "delete":
                value = None
            elif op == "set" or value is None:
                value = op_value
            else:
                value = f"{value}, {op_value}"
        return value

    def set_status(self, status_code: int) -> "PipelineResponse":
        self.default_status = status_code
        return self

    def on_finalize(self, callback: FinalizeCallback) -> "PipelineResponse":
        self._callbacks.append(callback)
        return self

    def _apply_headers(self, message: Message) -> None:
        message.setdefault("headers", [])
        message["headers"] = list(message["headers"])
        headers = MutableHeaders(scope=message)
        for op, name, value in self._header_ops:
            if op == "set":
                headers[name] = value
            elif op == "append":
                headers.append(name, value)
            elif name in headers:
                del headers[name]

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self._apply_headers(message)
            self.status_code = message["status"]
            self.started = True
            await self._send(message)
            return

        await self._send(message)
        if message["type"] == "http.response.body" and not message.get("more_body", False):
            self.finalize()

    async def end(self, status_code: Optional[int] = None) -> None:
        """Finish the response from within the pipeline, with no body"""
        if status_code is not None:
            self.set_status(status_code)
        await self({"type": "http.response.start", "status": self.default_status, "headers": []})
        await self({"type": "http.response.body", "body": b"", "more_body": False})

    def finalize(self) -> None:
        """Run the finalize callbacks; later calls are no-ops"""
        if self.finalized:
            return
        self.finalized = True
        for callback in self._callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Response finalize callback failed")
