"""
Tests for the gateway HTTP endpoints
"""
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from catstyle.api.routes.suggest import get_gateway
from catstyle.core.errors import FormatError, UpstreamError
from catstyle.main import create_app
from catstyle.services.provider_gateway import ProviderGateway
from conftest import make_llm_client


def _app(settings, gateway):
    app = create_app(settings)
    app.dependency_overrides[get_gateway] = lambda: gateway
    return app


@pytest.fixture
def client(settings, gateway):
    return TestClient(_app(settings, gateway))


def test_suggest_success(client, llm_client):
    response = client.post("/suggest", json={"categoryName": "Gimnasio"})

    assert response.status_code == 200
    assert response.json() == {
        "icon": "fitness",
        "color": "#10B981",
        "confidence": 0.95,
        "provider": "openai",
    }
    assert response.headers["access-control-allow-origin"] == "*"
    llm_client.complete.assert_awaited_once()


def test_model_is_passed_through(client, llm_client):
    response = client.post("/suggest", json={"categoryName": "Casa", "model": "azure/gpt-4o"})

    assert response.status_code == 200
    assert response.json()["provider"] == "azure"
    assert llm_client.complete.call_args.kwargs["model"] == "gpt-4o"


@pytest.mark.parametrize("body", [{"categoryName": ""}, {"categoryName": "   "}, {}, {"categoryName": None}])
def test_empty_name_is_rejected(client, llm_client, body):
    response = client.post("/suggest", json=body)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Bad Request",
        "message": "categoryName is required and cannot be empty",
    }
    llm_client.complete.assert_not_called()


def test_missing_body(client):
    response = client.post("/suggest", content=b"")

    assert response.status_code == 400
    assert response.json()["message"] == "Missing request body"


def test_malformed_body(client):
    response = client.post("/suggest", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request body"


def test_missing_credential(unconfigured_settings):
    llm_client = make_llm_client()
    gateway = ProviderGateway(unconfigured_settings, llm_client=llm_client)
    client = TestClient(_app(unconfigured_settings, gateway))

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 503
    assert response.json()["error"] == "Service Unavailable"
    llm_client.complete.assert_not_called()


def test_rate_limited(client, llm_client):
    llm_client.complete.side_effect = UpstreamError("Provider returned 429: Rate limit reached", status_code=429)

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 429
    assert response.json()["error"] == "Too Many Requests"


def test_rejected_api_key(client, llm_client):
    llm_client.complete.side_effect = UpstreamError("Provider returned 401: Incorrect API key provided", status_code=401)

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 503


def test_unparseable_model_reply(settings):
    gateway = ProviderGateway(settings, llm_client=make_llm_client("I would pick a house"))
    client = TestClient(_app(settings, gateway))

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid AI response format")


def test_format_error_from_gateway(client, gateway):
    gateway.suggest = AsyncMock(side_effect=FormatError("Missing icon or color in AI response"))

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing icon or color in AI response"


def test_unexpected_error_hides_details_in_production(client, llm_client):
    llm_client.complete.side_effect = RuntimeError("boom")

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error", "message": "boom"}


def test_unexpected_error_shows_details_in_development(settings):
    settings = settings.model_copy(update={"app_env": "development"})
    llm_client = make_llm_client()
    llm_client.complete.side_effect = RuntimeError("boom")
    client = TestClient(_app(settings, ProviderGateway(settings, llm_client=llm_client)))

    response = client.post("/suggest", json={"categoryName": "Casa"})

    assert response.status_code == 500
    assert "RuntimeError: boom" in response.json()["details"]


@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "TRACE"])
def test_only_post_is_supported(client, method):
    response = client.request(method, "/suggest")

    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed", "message": "Only POST method is supported"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_head_is_not_allowed(client):
    response = client.head("/suggest")

    assert response.status_code == 405
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"])
def test_gateway_health_answers_any_method(client, llm_client, method):
    response = client.request(method, "/suggest/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["defaultModel"] == "gpt-3.5-turbo"
    llm_client.complete.assert_not_called()


def test_gateway_health_head(client):
    response = client.head("/suggest/health")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_preflight(client, llm_client):
    response = client.options("/suggest")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type"
    llm_client.complete.assert_not_called()


def test_gateway_health_not_configured(unconfigured_settings):
    llm_client = make_llm_client()
    gateway = ProviderGateway(unconfigured_settings, llm_client=llm_client)
    client = TestClient(_app(unconfigured_settings, gateway))

    response = client.get("/suggest/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "not_configured"
    assert data["configured"] is False
    assert data["provider"] == "openai"
    assert data["defaultModel"] == "gpt-3.5-turbo"
    assert "timestamp" in data
    assert llm_client.complete.call_count == 0


def test_gateway_health_configured(client):
    data = client.get("/suggest/health").json()

    assert data["status"] == "healthy"
    assert data["configured"] is True


def test_custom_suggest_path(settings, gateway):
    settings = settings.model_copy(update={"suggest_path": "/api/category-style"})
    client = TestClient(_app(settings, gateway))

    assert client.post("/api/category-style", json={"categoryName": "Casa"}).status_code == 200
    assert client.post("/suggest", json={"categoryName": "Casa"}).status_code == 404


def test_service_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["gateway"]["status"] == "healthy"


def test_liveness(client):
    response = client.get("/health/liveness")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_request_id_header(client):
    response = client.get("/health/liveness", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_lifespan_closes_gateway(settings, gateway, llm_client):
    with TestClient(_app(settings, gateway)) as client:
        client.get("/health/liveness")

    llm_client.close.assert_awaited_once()
