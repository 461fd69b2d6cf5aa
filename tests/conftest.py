"""
Test configuration and fixtures.
"""
import io
import json
from typing import Any, Dict, List

import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.testclient import TestClient

from edge_pipeline.core import Settings, create_app
from edge_pipeline.observability import StructuredLogger

ALLOWED_ORIGIN = "https://app.example.com"


class StatusError(Exception):
    """Failure carrying its own status hint, like an error from a route handler"""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class LogCapture:
    """Collects the JSON lines written by a production-format logger"""

    def __init__(self):
        self.stream = io.StringIO()

    def events(self) -> List[Dict[str, Any]]:
        return [
            json.loads(line)
            for line in self.stream.getvalue().splitlines()
            if line.strip()
        ]

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [event for event in self.events() if event.get("type") == event_type]

    def with_message(self, message: str) -> List[Dict[str, Any]]:
        return [event for event in self.events() if event.get("msg") == message]


def add_test_routes(app: FastAPI, downstream_calls: List[str]) -> None:
    """Stand-in route handlers for the downstream chain"""

    async def echo():
        downstream_calls.append("echo")
        return {"ok": True}

    async def boom():
        raise RuntimeError("kaboom")

    async def missing():
        raise StatusError(404, "Not Found")

    async def silent_failure():
        raise RuntimeError()

    async def server_error():
        return JSONResponse(status_code=500, content={"ok": False})

    async def stream():
        return StreamingResponse(iter([b"a", b"b", b"c"]), media_type="text/plain")

    async def item(item_id: int):
        return {"item_id": item_id}

    app.add_api_route("/echo", echo, methods=["GET", "POST", "OPTIONS"])
    app.add_api_route("/boom", boom)
    app.add_api_route("/missing", missing)
    app.add_api_route("/silent-failure", silent_failure)
    app.add_api_route("/server-error", server_error)
    app.add_api_route("/stream", stream)
    app.add_api_route("/items/{item_id}", item)


@pytest.fixture
def log_capture():
    """Capture structured log output"""
    return LogCapture()


@pytest.fixture
def downstream_calls():
    """Record of downstream handler invocations"""
    return []


@pytest.fixture
def make_app(log_capture, downstream_calls):
    """Factory for test apps with overridable settings"""

    def factory(**overrides) -> FastAPI:
        options = {"allowed_origins": [ALLOWED_ORIGIN], "production": False}
        options.update(overrides)
        app_settings = Settings(_env_file=None, **options)
        logger = StructuredLogger(production=True, level="debug", stream=log_capture.stream)
        app = create_app(app_settings, logger)
        add_test_routes(app, downstream_calls)
        return app

    return factory


@pytest.fixture
def app(make_app):
    """Create test app"""
    return make_app()


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def production_client(make_app):
    """Create test client for an app running in production mode"""
    return TestClient(make_app(production=True))


@pytest.fixture
def wildcard_client(make_app):
    """Create test client for an app allowing any origin"""
    return TestClient(make_app(allowed_origins=["*"]))
