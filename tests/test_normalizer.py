import pytest

from config import config
from models import Invoice, Quotation, Receipt
from normalizer import normalize, normalize_receipt, to_number, to_text


class TestToNumber:
    def test_plain_numbers(self):
        assert to_number(12) == 12.0
        assert to_number(3.5) == 3.5

    def test_leading_number_of_string(self):
        assert to_number("12abc") == 12.0
        assert to_number("  -3.5kg") == -3.5
        assert to_number("1e3") == 1000.0

    def test_unparseable_values_are_zero(self):
        assert to_number("abc") == 0.0
        assert to_number("") == 0.0
        assert to_number(None) == 0.0
        assert to_number(True) == 0.0
        assert to_number(float("nan")) == 0.0
        assert to_number(float("inf")) == 0.0
        assert to_number(10 ** 400) == 0.0


def test_to_text_defaults_blank_values():
    assert to_text(None, "N/A") == "N/A"
    assert to_text("   ", "N/A") == "N/A"
    assert to_text(42) == "42"


class TestNormalize:
    def test_empty_invoice_gets_placeholders(self):
        document = normalize({}, "invoice")
        assert isinstance(document, Invoice)
        assert document.number == "DOC-001"
        assert document.status == "pending"
        assert document.company.name == "Company Name"
        assert document.client.name == "Client Name"
        assert document.payment_method == "Cash"
        assert document.items == []
        assert document.template == config.DEFAULT_TEMPLATE
        assert document.font_size == "medium"

    def test_none_record_is_accepted(self):
        document = normalize(None, "quotation")
        assert isinstance(document, Quotation)
        assert document.status == "draft"

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown document kind"):
            normalize({}, "purchase_order")

    def test_invoice_fields(self, invoice_record):
        document = normalize(invoice_record, "invoice")
        assert document.number == "INV-001"
        assert document.secondary_date == "2024-02-15"
        assert document.payment_method == "Bank Transfer"
        assert document.company.gst_id == "27ABCDE1234F1Z5"
        assert document.tax_enabled is True
        assert document.tax_amount == 180
        assert document.grand_total == 1180
        assert [item.description for item in document.items] == ["Wardrobe", "Kitchen shelves"]

    def test_quotation_uses_validity_date(self, quotation_record):
        document = normalize(quotation_record, "quotation")
        assert document.number == "QUO-010"
        assert document.secondary_date == "2024-02-14"
        assert not hasattr(document, "payment_method")

    def test_number_key_follows_kind(self):
        assert normalize({"invoiceNumber": "INV-5"}, "quotation").number == "DOC-001"
        assert normalize({"quotationNumber": "QUO-5"}, "invoice").number == "DOC-001"
        assert normalize({"quotationNumber": "QUO-5"}, "quotation").number == "QUO-5"

    def test_numeric_strings_are_coerced(self):
        document = normalize(
            {"items": [{"description": "Paint", "quantity": "3 tins", "rate": "10.5", "amount": "100.456"}],
             "grandTotal": "abc"},
            "invoice",
        )
        item = document.items[0]
        assert item.quantity == 3
        assert item.rate == 10.5
        assert item.amount == 100.46
        assert document.grand_total == 0.0

    def test_missing_description_gets_dash(self):
        document = normalize({"items": [{"amount": 5}]}, "invoice")
        assert document.items[0].description == "-"

    def test_items_must_be_a_list(self):
        with pytest.raises(TypeError):
            normalize({"items": "Wardrobe x2"}, "invoice")
        with pytest.raises(TypeError):
            normalize({"items": {"description": "Wardrobe"}}, "invoice")

    def test_item_entries_must_be_records(self):
        with pytest.raises(TypeError, match=r"items\[1\]"):
            normalize({"items": [{"description": "ok"}, "broken"]}, "invoice")

    def test_unknown_font_size_falls_back_to_medium(self):
        assert normalize({"fontSize": "huge"}, "invoice").font_size == "medium"
        assert normalize({"fontSize": "small"}, "invoice").font_size == "small"

    def test_percentage_discount(self):
        document = normalize({"discountType": "percentage", "discount": 10, "discountAmount": 100}, "invoice")
        assert document.discount.type == "percentage"
        assert document.discount.value == 10
        assert document.discount.amount == 100

    def test_signature_settings(self):
        document = normalize(
            {"signatureSettings": {"type": "text", "text": "R. Kumar", "font": "modern"}}, "invoice"
        )
        signature = document.company.signature
        assert signature.type == "text"
        assert signature.text == "R. Kumar"
        assert signature.font == "modern"

    def test_unknown_signature_type_is_none(self):
        document = normalize({"signatureSettings": {"type": "stamp"}}, "invoice")
        assert document.company.signature.type == "none"

    def test_documents_are_frozen(self, invoice_record):
        document = normalize(invoice_record, "invoice")
        with pytest.raises(Exception):
            document.number = "changed"


class TestNormalizeReceipt:
    def test_advance_payment_with_milestone(self, receipt_payload):
        receipt = normalize_receipt(**receipt_payload)
        assert isinstance(receipt, Receipt)
        assert receipt.number == "PAY-7"
        assert receipt.payment_type == "advance"
        assert len(receipt.items) == 1
        item = receipt.items[0]
        assert item.description == "Advance Payment - Foundation"
        assert item.quantity == 1
        assert item.rate == item.amount == 25000
        assert receipt.subtotal == receipt.grand_total == 25000
        assert receipt.client.name == "Lake View Villa"
        assert receipt.project_location == "Pune"
        assert receipt.milestone_stage == "Stage 1"
        assert receipt.notes == "Advance for civil work"
        assert receipt.generated_on == "2024-01-16"
        assert receipt.template == "modern"
        assert receipt.payment_method == "Cash"

    def test_payment_method_is_read_from_payment(self, receipt_payload):
        receipt_payload["payment"]["paymentMethod"] = "UPI"
        assert normalize_receipt(**receipt_payload).payment_method == "UPI"

    def test_installment_without_project(self):
        receipt = normalize_receipt({"id": "PAY-8", "amount": "500", "clientName": "Asha"})
        assert receipt.payment_type == "installment"
        assert receipt.items[0].description == "Installment Payment"
        assert receipt.client.name == "Asha"
        assert receipt.project_name == ""
        assert receipt.generated_on

    def test_missing_client_and_project(self):
        receipt = normalize_receipt({})
        assert receipt.client.name == "N/A"
        assert receipt.number == "N/A"
        assert receipt.grand_total == 0.0

    def test_normalize_dispatches_receipts(self, receipt_payload):
        receipt = normalize(receipt_payload, "receipt")
        assert isinstance(receipt, Receipt)
        assert receipt.number == "PAY-7"
