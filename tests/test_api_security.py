import fitz
import pytest
from fastapi.testclient import TestClient

import piimask.api as api
import piimask.settings as settings
from piimask.document import PdfDocument
from piimask.health import HealthCheckResult


@pytest.fixture
def client(monkeypatch, gateway):
    monkeypatch.delenv("PIIMASK_API_TOKEN", raising=False)
    settings.reset_settings_cache()
    api.set_gateway(gateway)
    yield TestClient(api.app)
    api.set_gateway(None)
    settings.reset_settings_cache()


def _secure(monkeypatch):
    monkeypatch.setenv("PIIMASK_API_TOKEN", "super-secret")
    settings.reset_settings_cache()


def _pdf(*pages: str) -> bytes:
    with PdfDocument.from_pages(pages) as doc:
        return doc.serialize()


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "PII Detection"


def test_detect_pii_returns_merged_entities(client):
    resp = client.post("/detect_pii", json={"text": "Robert O'Connor"})
    assert resp.status_code == 200
    entities = resp.json()["entities"]
    assert [(e["word"], e["entity"], e["start"], e["end"]) for e in entities] == [
        ("Robert", "GIVENNAME", 0, 6),
        ("O'Connor", "SURNAME", 7, 15),
    ]
    assert entities[1]["index"] == 2


def test_detect_and_replace_pii(client):
    resp = client.post("/detect_and_replace_pii", json={"text": "Alice lives in Paris"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["sanitized_text"] == "[GIVENNAME] lives in [CITY]"
    assert len(body["entities"]) == 2


def test_redact_requires_bearer_token(client, monkeypatch):
    _secure(monkeypatch)

    resp = client.post("/detect_and_replace_pii_pdf", content=b"%PDF-1.0\n")
    assert resp.status_code == 401

    resp_ok = client.post(
        "/detect_and_replace_pii_pdf",
        headers={"Authorization": "Bearer super-secret"},
        content=b"%PDF-1.0\n",
    )
    assert resp_ok.status_code == 400


def test_text_endpoints_require_bearer_token(client, monkeypatch):
    _secure(monkeypatch)
    resp = client.post("/detect_pii", json={"text": "Alice"})
    assert resp.status_code == 401
    resp = client.post(
        "/detect_pii",
        json={"text": "Alice"},
        headers={"Authorization": "Bearer wrong"},
    )
    assert resp.status_code == 401


def test_pdf_endpoint_returns_redacted_pdf(client):
    resp = client.post(
        "/detect_and_replace_pii_pdf",
        content=_pdf("Nothing here", "Signed: Alice"),
        headers={"Content-Type": "application/pdf"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    with PdfDocument.parse(resp.content) as doc:
        assert doc.page_count == 2
        assert "[GIVENNAME]" in doc.page_text(1)
        assert "Alice" not in doc.page_text(1)


def test_inference_failure_is_internal_error(client, gateway_factory):
    api.set_gateway(gateway_factory(fail=True))
    resp = client.post("/detect_pii", json={"text": "Alice"})
    assert resp.status_code == 500
    assert "detect" in resp.json()["detail"]


def test_pdf_write_failure_is_internal_error(client, monkeypatch):
    data = _pdf("Signed: Alice")

    def broken_tobytes(self, *args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(fitz.Document, "tobytes", broken_tobytes)
    resp = client.post("/detect_and_replace_pii_pdf", content=data)
    assert resp.status_code == 500
    assert "serialize_document" in resp.json()["detail"]


def test_missing_gateway_is_unavailable(client):
    api.set_gateway(None)
    resp = client.post("/detect_pii", json={"text": "Alice"})
    assert resp.status_code == 503


def test_readyz_reflects_health(client, monkeypatch: pytest.MonkeyPatch):
    def fake_checks(_settings, _gateway):
        return [HealthCheckResult(name="model", status="fail", detail="missing", required=True)]

    monkeypatch.setattr(api, "run_readiness_checks", fake_checks)
    resp = client.get("/readyz")
    assert resp.status_code == 503
    payload = resp.json()
    assert payload["ready"] is False
    assert payload["checks"][0]["name"] == "model"


def test_readyz_passes_with_loaded_model(client):
    resp = client.get("/readyz")
    assert resp.status_code == 200
    assert resp.json()["ready"] is True
