from __future__ import annotations

from typing import Dict, Optional

from fastapi.testclient import TestClient
from prometheus_client.parser import text_string_to_metric_families


def _read_metric(
    client: TestClient,
    metric: str,
    labels: Optional[Dict[str, str]] = None,
) -> float:
    response = client.get("/metrics")
    response.raise_for_status()
    for family in text_string_to_metric_families(response.text):
        for sample in family.samples:
            if sample.name != metric:
                continue
            if labels is None or dict(sample.labels) == labels:
                return float(sample.value)
    return 0.0


def test_root_and_status_report_ok(client):
    for path in ("/", "/status"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


def test_db_status_runs_probe(client):
    response = client.get("/status/db")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["details"]["backend"] == "other"


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/status", headers={"X-Request-Id": "req-123"})
    generated = client.get("/status")

    assert echoed.headers["X-Request-Id"] == "req-123"
    assert generated.headers["X-Request-Id"]


def test_auth_failures_are_counted(client):
    labels = {"reason": "missing_header"}
    before = _read_metric(client, "auth_failures_total", labels)

    assert client.get("/v1/subscriptions").status_code == 401

    assert _read_metric(client, "auth_failures_total", labels) == before + 1


def test_request_counter_collapses_generated_ids(client):
    labels = {"method": "DELETE", "path": "/v1/folders/:id", "status": "401"}
    before = _read_metric(client, "api_requests_total", labels)

    client.delete("/v1/folders/fld_abcdef123456")

    assert _read_metric(client, "api_requests_total", labels) == before + 1


def test_app_startup_creates_schema():
    from sqlmodel import SQLModel

    from feedreader.db import get_engine
    from feedreader.main import create_app

    SQLModel.metadata.drop_all(get_engine())

    with TestClient(create_app()) as fresh:
        response = fresh.post(
            "/v1/auth/register",
            json={"username": "startup", "email": "startup@example.com", "password": "pw"},
        )

    assert response.status_code == 201
