"""HTTP tests for the extraction endpoint with stubbed model and index."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from errors import UpstreamError


@pytest.fixture
def client() -> TestClient:
    # Not used as a context manager, so the lifespan (Ollama/Pinecone setup) does not run
    return TestClient(main.app)


@pytest.fixture
def wired(monkeypatch, mock_retriever: MagicMock):
    def wire(llm):
        client = MagicMock()
        client.as_runnable.return_value = llm
        monkeypatch.setattr(main, "_llm", client)
        monkeypatch.setattr(main, "_retriever", mock_retriever)
    return wire


class TestChatEndpoint:
    def test_single_field_extracted(self, client: TestClient, wired, make_llm):
        wired(make_llm({"Invoice_Number": '{"Invoice_Number":"INV-001"}'}))

        resp = client.post("/api/chat", json={
            "dataFields": ["Invoice_Number"],
            "dataFieldsDescription": ["a unique invoice code"],
        })

        assert resp.status_code == 200
        assert resp.json() == {"Invoice_Number": "INV-001"}

    def test_multiple_fields_merged(self, client: TestClient, wired, invoice_llm):
        wired(invoice_llm)

        resp = client.post("/api/chat", json={
            "dataFields": ["Invoice_Number", "Quantity"],
            "dataFieldsDescription": ["a unique invoice code", "total quantity of commodities"],
        })

        assert resp.status_code == 200
        assert resp.json() == {"Invoice_Number": "INV-001", "Quantity": "12"}

    def test_upstream_error_returns_500_without_partial_results(self, client: TestClient, wired, reply_llm):
        def reply(prompt: str) -> str:
            raise UpstreamError("Cannot reach language model: refused")

        wired(reply_llm(reply))

        resp = client.post("/api/chat", json={
            "dataFields": ["Invoice_Number", "Quantity"],
            "dataFieldsDescription": ["a unique invoice code", "total quantity"],
        })

        assert resp.status_code == 500
        assert resp.json() == {"error": "Cannot reach language model: refused"}

    def test_mismatched_lists_return_500(self, client: TestClient, wired, invoice_llm):
        wired(invoice_llm)

        resp = client.post("/api/chat", json={
            "dataFields": ["Invoice_Number", "Quantity"],
            "dataFieldsDescription": ["a unique invoice code"],
        })

        assert resp.status_code == 500
        assert "same length" in resp.json()["error"]

    def test_padded_field_name_returns_500(self, client: TestClient, wired, invoice_llm):
        wired(invoice_llm)

        resp = client.post("/api/chat", json={
            "dataFields": [" Invoice_Number"],
            "dataFieldsDescription": ["a unique invoice code"],
        })

        assert resp.status_code == 500
        assert "surrounding whitespace" in resp.json()["error"]
        assert invoice_llm.calls == []

    def test_malformed_body_returns_500(self, client: TestClient, wired, invoice_llm):
        wired(invoice_llm)

        resp = client.post("/api/chat", json={"dataFields": "Invoice_Number"})

        assert resp.status_code == 500
        assert "Invalid request body" in resp.json()["error"]

    def test_unconfigured_index_returns_500(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(main, "_llm", MagicMock())
        monkeypatch.setattr(main, "_retriever", None)

        resp = client.post("/api/chat", json={"dataFields": ["A"], "dataFieldsDescription": ["a"]})

        assert resp.status_code == 500
        assert "no vector index" in resp.json()["error"]


class TestHealth:
    def test_health_reports_index_and_model(self, client: TestClient, monkeypatch, mock_retriever: MagicMock):
        llm = MagicMock()
        llm.health = AsyncMock(return_value={"status": "healthy", "model": "llama3.1", "model_available": True})
        monkeypatch.setattr(main, "_llm", llm)
        monkeypatch.setattr(main, "_retriever", mock_retriever)

        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["vector_index_configured"] is True
        assert body["llm_health"]["model_available"] is True

    def test_health_without_clients(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(main, "_llm", None)
        monkeypatch.setattr(main, "_retriever", None)

        body = client.get("/health").json()
        assert body["vector_index_configured"] is False
        assert "llm_health" not in body
