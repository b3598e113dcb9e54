"""
Tests for LoggingContextMiddleware
"""
import logging

import pytest
from fastapi.testclient import TestClient

from catstyle.api.routes.suggest import get_gateway
from catstyle.core.logging_config import request_context
from catstyle.main import create_app

MIDDLEWARE_LOGGER = "catstyle.core.middleware"


@pytest.fixture
def client(settings, gateway):
    app = create_app(settings)
    app.dependency_overrides[get_gateway] = lambda: gateway
    return TestClient(app)


def _completion_records(caplog):
    return [r for r in caplog.records if r.name == MIDDLEWARE_LOGGER and hasattr(r, "status_code")]


def test_completion_line_carries_route(client, caplog):
    caplog.set_level(logging.DEBUG, logger=MIDDLEWARE_LOGGER)

    client.post("/suggest", json={"categoryName": "Casa"})

    records = _completion_records(caplog)
    assert len(records) == 1
    record = records[0]
    assert record.levelno == logging.INFO
    assert record.getMessage() == "POST /suggest -> 200"
    assert record.route == "/suggest"
    assert record.status_code == 200
    assert record.duration_ms >= 0


def test_client_errors_log_as_warning(client, caplog):
    caplog.set_level(logging.DEBUG, logger=MIDDLEWARE_LOGGER)

    client.post("/suggest", json={"categoryName": ""})

    assert _completion_records(caplog)[0].levelno == logging.WARNING


def test_server_errors_log_as_error(client, llm_client, caplog):
    caplog.set_level(logging.DEBUG, logger=MIDDLEWARE_LOGGER)
    llm_client.complete.side_effect = RuntimeError("boom")

    client.post("/suggest", json={"categoryName": "Casa"})

    assert _completion_records(caplog)[0].levelno == logging.ERROR


def test_polled_endpoints_log_at_debug(client, caplog):
    caplog.set_level(logging.DEBUG, logger=MIDDLEWARE_LOGGER)

    client.get("/suggest/health")

    record = _completion_records(caplog)[0]
    assert record.levelno == logging.DEBUG
    assert record.route == "/suggest/health"


def test_unmatched_path_has_no_route(client, caplog):
    caplog.set_level(logging.DEBUG, logger=MIDDLEWARE_LOGGER)

    client.get("/nowhere")

    assert _completion_records(caplog)[0].route is None


def test_request_id_is_generated_and_context_cleared(client):
    response = client.get("/health/liveness")

    assert len(response.headers["X-Request-ID"]) == 32
    assert request_context.get({}) == {}
