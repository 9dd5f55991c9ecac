from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class KindConfig:
    """Per-kind labels and the optional sections a document kind may render."""

    title: str
    number_label: str
    date_label: str
    # "due" or "valid_until"; None renders neither section
    secondary_date: Optional[str]
    secondary_date_label: str
    show_payment_method: bool
    status_options: Tuple[str, ...]
    default_status: str
    default_number: str
    footer_message: str
    client_label: str = "BILL TO"

    @property
    def shows_due_date(self) -> bool:
        return self.secondary_date == "due"

    @property
    def shows_validity_date(self) -> bool:
        return self.secondary_date == "valid_until"


DOCUMENT_TYPES: Dict[str, KindConfig] = {
    "invoice": KindConfig(
        title="INVOICE",
        number_label="Invoice No",
        date_label="Invoice Date",
        secondary_date="due",
        secondary_date_label="Due Date",
        show_payment_method=True,
        status_options=("paid", "pending", "cancelled"),
        default_status="pending",
        default_number="DOC-001",
        footer_message="Thank you for your business!",
    ),
    "quotation": KindConfig(
        title="QUOTATION",
        number_label="Quotation No",
        date_label="Quotation Date",
        secondary_date="valid_until",
        secondary_date_label="Valid Until",
        show_payment_method=False,
        status_options=("draft", "sent", "accepted", "rejected"),
        default_status="draft",
        default_number="DOC-001",
        footer_message="Thank you for your business!",
    ),
    "receipt": KindConfig(
        title="PAYMENT RECEIPT",
        number_label="Receipt No",
        date_label="Date",
        secondary_date=None,
        secondary_date_label="",
        show_payment_method=False,
        status_options=("paid",),
        default_status="paid",
        default_number="N/A",
        footer_message="Thank you for your payment!",
        client_label="RECEIVED FROM",
    ),
}


def get_kind_config(kind: str) -> KindConfig:
    try:
        return DOCUMENT_TYPES[kind]
    except KeyError:
        raise ValueError(
            f"Unknown document kind '{kind}'. Expected one of: {', '.join(DOCUMENT_TYPES)}"
        ) from None
