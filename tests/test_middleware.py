"""
Middleware tests for thdrive/core/middleware.py

Covers:
- CorrelationIdMiddleware: correlation ID propagation
- RequestLoggingMiddleware: request logging and re-raise
- SecurityHeadersMiddleware: nosniff always, HSTS/CSP outside DEBUG
- Exception handlers: AppException and generic Exception
- setup_middleware: the full stack on the application
"""
import json
from unittest.mock import patch

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from thdrive.core.middleware import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    app_exception_handler,
    generic_exception_handler,
)
from thdrive.core.exceptions import (
    AppException,
    ErrorCode,
    InsufficientBalanceError,
    SettlementError,
)


# ============================================================================
# Helpers
# ============================================================================


def _hello(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


def _error(request: Request) -> PlainTextResponse:
    raise ValueError("test failure")


def _build_app(*, middlewares: list[tuple] | None = None) -> Starlette:
    """Minimal Starlette app with the given middleware"""
    app = Starlette(routes=[Route("/test", _hello), Route("/error", _error)])
    for mw_class, kwargs in middlewares or []:
        app.add_middleware(mw_class, **kwargs)
    return app


def _make_request(path: str = "/api/payments/qr-codes/scan") -> Request:
    return Request({"type": "http", "method": "POST", "path": path, "headers": []})


# ============================================================================
# CorrelationIdMiddleware
# ============================================================================


class TestCorrelationIdMiddleware:

    @pytest.mark.unit
    def test_generates_correlation_id_when_missing(self) -> None:
        app = _build_app(middlewares=[(CorrelationIdMiddleware, {})])
        with TestClient(app) as client:
            response = client.get("/test")
        assert response.status_code == 200
        assert len(response.headers["X-Correlation-ID"]) > 0

    @pytest.mark.unit
    def test_preserves_existing_correlation_id(self) -> None:
        app = _build_app(middlewares=[(CorrelationIdMiddleware, {})])
        with TestClient(app) as client:
            response = client.get("/test", headers={"X-Correlation-ID": "settle-42"})
        assert response.headers["X-Correlation-ID"] == "settle-42"

    @pytest.mark.unit
    def test_correlation_id_unique_per_request(self) -> None:
        app = _build_app(middlewares=[(CorrelationIdMiddleware, {})])
        with TestClient(app) as client:
            ids = {client.get("/test").headers["X-Correlation-ID"] for _ in range(5)}
        assert len(ids) == 5


# ============================================================================
# RequestLoggingMiddleware
# ============================================================================


class TestRequestLoggingMiddleware:

    @pytest.mark.unit
    def test_successful_request_logged(self) -> None:
        app = _build_app(middlewares=[(RequestLoggingMiddleware, {})])
        with patch("thdrive.core.middleware.logger") as mock_logger:
            with TestClient(app) as client:
                response = client.get("/test")
        assert response.status_code == 200
        messages = [call.args[0] for call in mock_logger.info.call_args_list]
        assert "Request started: GET /test" in messages
        assert "Request completed: GET /test" in messages

    @pytest.mark.unit
    def test_exception_in_handler_reraised(self) -> None:
        app = _build_app(middlewares=[(RequestLoggingMiddleware, {})])
        with patch("thdrive.core.middleware.logger") as mock_logger:
            with TestClient(app, raise_server_exceptions=True) as client:
                with pytest.raises(ValueError):
                    client.get("/error")
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["exc_info"] is True


# ============================================================================
# SecurityHeadersMiddleware
# ============================================================================


class TestSecurityHeadersMiddleware:

    @pytest.mark.unit
    def test_all_headers_outside_debug(self) -> None:
        app = _build_app(middlewares=[(SecurityHeadersMiddleware, {"debug": False})])
        with TestClient(app) as client:
            response = client.get("/test")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["content-security-policy"] == "upgrade-insecure-requests"
        assert "includeSubDomains" in response.headers["strict-transport-security"]

    @pytest.mark.unit
    def test_only_nosniff_in_debug(self) -> None:
        app = _build_app(middlewares=[(SecurityHeadersMiddleware, {"debug": True})])
        with TestClient(app) as client:
            response = client.get("/test")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert "content-security-policy" not in response.headers
        assert "strict-transport-security" not in response.headers


# ============================================================================
# Exception handlers
# ============================================================================


class TestAppExceptionHandler:

    @pytest.mark.unit
    async def test_business_error_maps_to_its_status(self) -> None:
        exc = InsufficientBalanceError(7, "10.00", "40.00")

        with patch("thdrive.core.middleware.logger") as mock_logger:
            response = await app_exception_handler(_make_request(), exc)

        assert response.status_code == exc.status_code
        body = json.loads(response.body)
        assert body["error"]["code"] == exc.error_code.value
        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    @pytest.mark.unit
    async def test_server_side_error_logged_as_error(self) -> None:
        exc = SettlementError("qr payment", RuntimeError("boom"))

        with patch("thdrive.core.middleware.logger") as mock_logger:
            response = await app_exception_handler(_make_request(), exc)

        assert response.status_code >= 500
        mock_logger.error.assert_called_once()

    @pytest.mark.unit
    async def test_generic_app_exception(self) -> None:
        exc = AppException("Custom failure", error_code=ErrorCode.VALIDATION_ERROR, status_code=400)

        response = await app_exception_handler(_make_request(), exc)

        assert response.status_code == 400
        assert json.loads(response.body)["error"]["message"] == "Custom failure"


class TestGenericExceptionHandler:

    @pytest.mark.unit
    async def test_does_not_leak_internal_details(self) -> None:
        exc = RuntimeError("password=hunter2 at db host 10.0.0.5")

        with patch("thdrive.core.middleware.logger"):
            response = await generic_exception_handler(_make_request(), exc)

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["code"] == ErrorCode.INTERNAL_ERROR.value
        assert "hunter2" not in response.body.decode()


# ============================================================================
# setup_middleware
# ============================================================================


class TestSetupMiddleware:

    @pytest.mark.integration
    async def test_full_middleware_stack(self, test_client) -> None:
        response = await test_client.get("/health", headers={"X-Correlation-ID": "stack-1"})

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Correlation-ID"] == "stack-1"
        assert response.headers["x-content-type-options"] == "nosniff"
