"""Tests for the HTTP edge (POST /api/v1/fetch)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from unwall.api.v1.retrieve import get_orchestrator
from unwall.core.config import settings
from unwall.main import app
from unwall.services.retrieval import (
    AcquisitionOutcome,
    RetrievalMethod,
    RetrievalOrchestrator,
)

URL = "https://example.com/story"
FETCH_PATH = f"{settings.API_V1_STR}/fetch"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _use(orchestrator: RetrievalOrchestrator) -> None:
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator


class TestFetchEndpoint:
    def test_success(self, client: TestClient, make_step, article_html: str) -> None:
        _use(RetrievalOrchestrator([make_step(RetrievalMethod.LIVE, AcquisitionOutcome.ok(article_html))]))

        response = client.post(FETCH_PATH, json={"url": URL})

        assert response.status_code == 200
        body = response.json()
        assert body["method"] == "live"
        assert body["title"] == "Council Approves Transit Budget"
        assert body["source_url"] == URL
        assert "<h1>Council Approves Transit Budget</h1>" in body["content_html"]

    def test_invalid_url(self, client: TestClient, make_step, call_log) -> None:
        _use(RetrievalOrchestrator([make_step(RetrievalMethod.LIVE, AcquisitionOutcome.failed("unused"))]))

        response = client.post(FETCH_PATH, json={"url": "not-a-url"})

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_URL_FORMAT"
        assert call_log == []

    def test_exhausted(self, client: TestClient, make_step) -> None:
        _use(
            RetrievalOrchestrator(
                [
                    make_step(RetrievalMethod.LIVE, AcquisitionOutcome.failed("http_404", status_code=404)),
                    make_step(RetrievalMethod.ARCHIVE, AcquisitionOutcome.failed("no_snapshot")),
                ]
            )
        )

        response = client.post(FETCH_PATH, json={"url": URL})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error_code"] == "EXHAUSTED_STRATEGIES"
        assert "live: http_404" in detail["detail"]
        assert "archive: no_snapshot" in detail["detail"]

    def test_total_timeout(self, client: TestClient, make_step, article_html: str) -> None:
        _use(
            RetrievalOrchestrator(
                [make_step(RetrievalMethod.LIVE, AcquisitionOutcome.ok(article_html), delay=1.0, timeout=5.0)],
                total_timeout=0.05,
            )
        )

        response = client.post(FETCH_PATH, json={"url": URL})

        assert response.status_code == 504
        assert response.json()["detail"]["error_code"] == "TIMEOUT"

    def test_missing_url_field(self, client: TestClient) -> None:
        response = client.post(FETCH_PATH, json={})

        assert response.status_code == 422


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["strategies"] == settings.RETRIEVAL_STRATEGY_ORDER

    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json()["status"] == "running"
