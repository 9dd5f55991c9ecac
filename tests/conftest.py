import pytest

from drawing import PdfCanvas
from layout import BOTTOM_MARGIN, TOP_MARGIN

# 1x1 transparent PNG
PNG_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class RecordingCanvas(PdfCanvas):
    """Real canvas that also remembers every string drawn, with its page number."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("top_margin", TOP_MARGIN)
        kwargs.setdefault("bottom_margin", BOTTOM_MARGIN)
        super().__init__(*args, **kwargs)
        self.texts = []
        self.cells = []

    def text(self, text, x, y, align="left"):
        lines = [text] if isinstance(text, str) else list(text)
        for line in lines:
            self.texts.append((self.page_count, line))
        super().text(text, x, y, align)

    def table(self, head, body, *args, **kwargs):
        for row in body:
            for cell in row:
                self.cells.append((self.page_count, cell))
        return super().table(head, body, *args, **kwargs)

    def strings(self):
        return [line for _, line in self.texts]

    def pages_of(self, needle):
        return [page for page, line in self.texts if needle in line]


def make_items(count, **overrides):
    items = []
    for index in range(count):
        item = {
            "description": f"Item {index + 1}",
            "quantity": 1,
            "rate": 100,
            "amount": 100,
        }
        item.update(overrides)
        items.append(item)
    return items


@pytest.fixture
def recording_canvas():
    return RecordingCanvas()


@pytest.fixture
def invoice_record():
    return {
        "invoiceNumber": "INV-001",
        "date": "2024-01-15",
        "dueDate": "2024-02-15",
        "status": "pending",
        "companyName": "Acme Interiors",
        "companyAddress": "12 Market Road\nPune",
        "companyPhone": "+91 98765 43210",
        "companyEmail": "accounts@acme.example",
        "companyGST": "27ABCDE1234F1Z5",
        "clientName": "Ravi Kumar",
        "clientAddress": "44 Lake View",
        "clientPhone": "+91 91234 56789",
        "clientEmail": "ravi@example.com",
        "items": [
            {"description": "Wardrobe", "quantity": 2, "rate": 250, "amount": 500},
            {"description": "Kitchen shelves", "quantity": 1, "rate": 500, "amount": 500},
        ],
        "subtotal": 1000,
        "gstEnabled": True,
        "gstPercentage": 18,
        "gstAmount": 180,
        "grandTotal": 1180,
        "paymentMethod": "Bank Transfer",
        "notes": "Delivery within two weeks.",
        "termsAndConditions": "50% advance, balance on delivery.",
        "template": "classic",
    }


@pytest.fixture
def quotation_record(invoice_record):
    record = dict(invoice_record)
    record.pop("invoiceNumber")
    record.pop("dueDate")
    record.pop("paymentMethod")
    record.update(quotationNumber="QUO-010", validityDate="2024-02-14", status="draft")
    return record


@pytest.fixture
def receipt_payload():
    return {
        "payment": {
            "id": "PAY-7",
            "date": "2024-01-15",
            "amount": 25000,
            "type": "advance",
            "milestoneId": "m1",
            "description": "Advance for civil work",
        },
        "project": {
            "name": "Lake View Villa",
            "location": "Pune",
            "milestones": [{"id": "m1", "name": "Foundation", "stage": "Stage 1"}],
        },
        "settings": {
            "companyName": "Acme Interiors",
            "companyPhone": "+91 98765 43210",
            "generatedOn": "2024-01-16",
            "template": "modern",
        },
    }
