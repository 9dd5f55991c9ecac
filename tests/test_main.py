import pytest
from fastapi.testclient import TestClient

from config import config
from main import GENERATION_FAILED, app, error_metrics
from themes import THEMES


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "PDF_OUTPUT_DIR", str(tmp_path / "generated"))
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["output_dir"] == "healthy"


def test_themes(client):
    response = client.get("/themes")
    assert response.status_code == 200
    assert sorted(response.json()["themes"]) == sorted(THEMES)


def test_preview_invoice(client, invoice_record, tmp_path):
    response = client.post("/documents/invoice/preview", json=invoice_record)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="INV-001.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")
    assert not (tmp_path / "generated").exists()


def test_generate_quotation(client, quotation_record, tmp_path):
    response = client.post("/documents/quotation", json=quotation_record)
    assert response.status_code == 200
    saved = tmp_path / "generated" / "QUO-010.pdf"
    assert saved.read_bytes() == response.content


def test_unknown_kind_is_not_found(client):
    assert client.post("/documents/purchase_order/preview", json={}).status_code == 404
    assert client.post("/documents/receipt", json={}).status_code == 404


def test_generation_failure_is_reported_and_tracked(client, invoice_record):
    before = error_metrics["document_generation_error"]["count"]
    invoice_record["items"] = "not a list"
    response = client.post("/documents/invoice/preview", json=invoice_record)
    assert response.status_code == 500
    assert response.json()["detail"] == GENERATION_FAILED

    metrics = client.get("/metrics").json()["error_metrics"]
    assert metrics["document_generation_error"]["count"] == before + 1
    assert metrics["document_generation_error"]["last_error"]["document_kind"] == "invoice"


def test_receipt_preview(client, receipt_payload):
    response = client.post("/receipts/preview", json=receipt_payload)
    assert response.status_code == 200
    assert 'filename="Payment_Receipt_PAY-7_15-01-2024.pdf"' in response.headers["content-disposition"]


def test_receipt_generate(client, receipt_payload, tmp_path):
    response = client.post("/receipts", json=receipt_payload)
    assert response.status_code == 200
    assert (tmp_path / "generated" / "Payment_Receipt_PAY-7_15-01-2024.pdf").exists()


def test_receipt_requires_payment(client):
    assert client.post("/receipts/preview", json={"project": {}}).status_code == 422
