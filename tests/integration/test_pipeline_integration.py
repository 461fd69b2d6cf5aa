"""
Integration tests for the assembled middleware pipeline.
"""
import pytest

from tests.conftest import ALLOWED_ORIGIN


class TestRequestLogging:
    """Request/response logging through the real application"""

    @pytest.mark.integration
    def test_inbound_request_id_is_echoed(self, client):
        """Test a caller-supplied correlation id comes back unchanged"""
        response = client.get("/echo", headers={"x-request-id": "abc123"})

        assert response.status_code == 200
        assert response.headers["x-request-id"] == "abc123"

    @pytest.mark.integration
    def test_request_id_is_generated(self, client, log_capture):
        """Test a correlation id is generated and logged when absent"""
        response = client.get("/echo")

        request_id = response.headers["x-request-id"]
        assert len(request_id) == 11
        assert {event["requestId"] for event in log_capture.events() if "requestId" in event} == {request_id}

    @pytest.mark.integration
    def test_one_request_and_one_terminal_event(self, client, log_capture):
        """Test each request logs exactly one start and one completion"""
        client.get("/echo?page=2&tag=a&tag=b", headers={"Authorization": "Bearer X"})

        requests = log_capture.of_type("request")
        responses = log_capture.of_type("response")
        assert len(requests) == 1
        assert len(responses) == 1

        started = requests[0]
        assert started["level"] == "debug"
        assert started["msg"] == "Request received"
        assert started["method"] == "GET"
        assert started["path"] == "/echo"
        assert started["url"] == "/echo?page=2&tag=a&tag=b"
        assert started["query"] == {"page": "2", "tag": ["a", "b"]}
        assert started["headers"]["authorization"] == "[REDACTED]"
        assert started["headers"]["host"] == "testserver"
        assert started["remoteAddress"] == "testclient"

        finished = responses[0]
        assert finished["status"] == 200
        assert isinstance(finished["responseTime"], int)
        assert finished["msg"] == f"Response sent: 200 ({finished['responseTime']}ms)"

    @pytest.mark.integration
    def test_streamed_response_logs_once(self, client, log_capture):
        """Test multi-chunk bodies still produce a single terminal event"""
        response = client.get("/stream")

        assert response.text == "abc"
        assert len(log_capture.of_type("response")) == 1

    @pytest.mark.integration
    @pytest.mark.parametrize(
        "path, status_code, level",
        [
            ("/echo", 200, "info"),
            ("/missing", 404, "warning"),
            ("/server-error", 500, "error"),
        ],
    )
    def test_status_to_severity(self, client, log_capture, path, status_code, level):
        """Test completion severity follows the final status"""
        client.get(path)

        (finished,) = log_capture.of_type("response")
        assert finished["status"] == status_code
        assert finished["level"] == level


class TestCorsPolicy:
    """CORS evaluation through the adapter"""

    @pytest.mark.integration
    def test_preflight_is_answered_without_downstream(self, client, downstream_calls, log_capture):
        """Test an allowed preflight gets 204, no body and the CORS headers"""
        response = client.options(
            "/echo",
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-allow-methods"] == "GET,POST,PUT,DELETE,OPTIONS,PATCH"
        assert response.headers["access-control-allow-headers"] == (
            "Origin,X-Requested-With,Content-Type,Accept,Authorization,Range"
        )
        assert response.headers["access-control-expose-headers"] == (
            "Content-Length,Content-Range,Content-Type,Accept-Ranges"
        )
        assert response.headers["access-control-allow-credentials"] == "true"
        assert response.headers["access-control-max-age"] == "86400"
        assert "Origin" in response.headers["vary"]
        assert "x-request-id" in response.headers
        assert downstream_calls == []

        (finished,) = log_capture.of_type("response")
        assert finished["status"] == 204

    @pytest.mark.integration
    def test_allowed_origin_on_normal_request(self, client, downstream_calls):
        """Test CORS headers are added to downstream responses"""
        response = client.get("/echo", headers={"Origin": ALLOWED_ORIGIN})

        assert response.json() == {"ok": True}
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-allow-credentials"] == "true"
        assert "access-control-max-age" not in response.headers
        assert downstream_calls == ["echo"]

    @pytest.mark.integration
    def test_disallowed_origin_gets_no_allow_origin(self, client):
        """Test a rejected origin never receives the allow-origin header"""
        normal = client.get("/echo", headers={"Origin": "https://evil.example"})
        preflight = client.options("/echo", headers={"Origin": "https://evil.example"})

        assert "access-control-allow-origin" not in normal.headers
        assert preflight.status_code == 204
        assert "access-control-allow-origin" not in preflight.headers

    @pytest.mark.integration
    def test_wildcard_origin(self, wildcard_client):
        """Test a wildcard policy allows any origin"""
        response = wildcard_client.get("/echo", headers={"Origin": "https://anywhere.example"})

        assert response.headers["access-control-allow-origin"] == "*"
        assert "vary" not in response.headers

    @pytest.mark.integration
    def test_cors_headers_on_error_responses(self, client):
        """Test failures still carry the CORS headers set before the handler ran"""
        response = client.get("/boom", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 500
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN


class TestErrorResponses:
    """Error envelopes through the real application"""

    @pytest.mark.integration
    def test_status_hint_is_mapped(self, production_client):
        """Test a failure carrying status 404 yields a 404 envelope"""
        response = production_client.get("/missing")

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        assert body["error"] == {"code": 404, "message": "Not Found"}
        assert body["success"] is False
        assert body["path"] == "/missing"
        assert body["timestamp"].endswith("Z")

    @pytest.mark.integration
    def test_uncaught_failure_is_500(self, client, log_capture):
        """Test an uncaught exception becomes a 500 envelope with details"""
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == 500
        assert body["error"]["message"] == "kaboom"
        assert body["error"]["details"]["name"] == "RuntimeError"
        assert "kaboom" in body["error"]["details"]["stack"]

        (failure,) = log_capture.with_message("Request error")
        assert failure["level"] == "error"
        assert failure["path"] == "/boom"
        assert failure["requestId"] == response.headers["x-request-id"]
        assert len(log_capture.of_type("response")) == 1

    @pytest.mark.integration
    def test_production_envelope_has_no_details(self, production_client):
        """Test production responses never include stack traces"""
        response = production_client.get("/boom")

        assert response.status_code == 500
        assert "details" not in response.json()["error"]

    @pytest.mark.integration
    def test_default_message(self, production_client):
        """Test a failure without a message gets the generic one"""
        response = production_client.get("/silent-failure")

        assert response.json()["error"] == {"code": 500, "message": "Internal Server Error"}

    @pytest.mark.integration
    def test_unknown_route_uses_envelope(self, production_client):
        """Test framework 404s share the envelope shape"""
        response = production_client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == {"code": 404, "message": "Not Found"}

    @pytest.mark.integration
    def test_method_not_allowed_uses_envelope(self, production_client):
        """Test framework 405s keep their status and Allow header"""
        response = production_client.delete("/boom")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == 405
        assert "GET" in response.headers["allow"]

    @pytest.mark.integration
    def test_validation_error_uses_envelope(self, client):
        """Test request validation failures become 422 envelopes"""
        response = client.get("/items/not-a-number")

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == 422
        assert error["message"] == "Request validation failed"
        assert error["details"]["errors"][0]["loc"] == ["path", "item_id"]
