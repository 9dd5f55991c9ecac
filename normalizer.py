"""
Coerce raw business records (as posted by the UI) into canonical Document models.

Raw records use the UI's camelCase keys. Missing values fall back to
placeholders and numeric fields go through a lenient leading-number parse,
so a half-filled form still renders. Structurally wrong input (an ``items``
value that is not a list of mappings) is not guessed at and raises.
"""
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from config import config
from document_types import get_kind_config
from models import (
    ClientInfo,
    CompanyInfo,
    Discount,
    Document,
    Invoice,
    LineItem,
    Quotation,
    Receipt,
    SignatureSettings,
)

FONT_SIZE_TIERS = ("small", "medium", "large")
SIGNATURE_TYPES = ("none", "image", "text")
NUMBER_KEYS = {"invoice": "invoiceNumber", "quotation": "quotationNumber"}

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def to_number(value: Any) -> float:
    """Best-effort numeric parse: leading number of a string, 0.0 when nothing parses."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def to_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value)
    return text if text.strip() else default


def to_date_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _signature_settings(raw: Any) -> Optional[SignatureSettings]:
    if not isinstance(raw, Mapping):
        return None
    sig_type = raw.get("type")
    if sig_type not in SIGNATURE_TYPES:
        sig_type = "none"
    return SignatureSettings(
        type=sig_type,
        image=raw.get("image") if isinstance(raw.get("image"), str) else None,
        text=to_text(raw.get("text")) or None,
        font=to_text(raw.get("font")) or None,
    )


def _line_items(raw_items: Any) -> List[LineItem]:
    if raw_items is None:
        return []
    if isinstance(raw_items, (str, bytes)) or not isinstance(raw_items, (list, tuple)):
        raise TypeError(f"items must be a list of records, got {type(raw_items).__name__}")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, Mapping):
            raise TypeError(f"items[{index}] must be a record, got {type(raw).__name__}")
        items.append(LineItem(
            description=to_text(raw.get("description") or raw.get("name"), "-"),
            measurement_value=to_number(raw.get("measurementValue")),
            unit=to_text(raw.get("unit")),
            quantity=to_number(raw.get("quantity")),
            rate=to_number(raw.get("rate")),
            amount=round(to_number(raw.get("amount")), 2),
            tax_rate=to_number(raw.get("gstRate")),
            tax_value=to_number(raw.get("gstValue")),
        ))
    return items


def _company(raw: Mapping) -> CompanyInfo:
    logo = raw.get("companyLogo")
    return CompanyInfo(
        name=to_text(raw.get("companyName"), "Company Name"),
        address=to_text(raw.get("companyAddress")),
        phone=to_text(raw.get("companyPhone")),
        email=to_text(raw.get("companyEmail")),
        gst_id=to_text(raw.get("companyGST")),
        # Logo validity is judged at embed time, keep whatever was supplied
        logo=logo if isinstance(logo, str) and logo else None,
        signature=_signature_settings(raw.get("signatureSettings") or raw.get("signature")),
    )


def _template(raw: Mapping) -> str:
    return to_text(raw.get("template"), config.DEFAULT_TEMPLATE)


def _font_size(raw: Mapping) -> str:
    tier = raw.get("fontSize")
    return tier if tier in FONT_SIZE_TIERS else "medium"


def normalize(raw: Optional[Mapping], kind: str) -> Document:
    """Build the canonical Document for one render call."""
    kind_config = get_kind_config(kind)
    if kind == "receipt":
        raw = raw or {}
        return normalize_receipt(raw.get("payment", raw), raw.get("project"), raw.get("settings"))

    raw = raw or {}
    common: Dict[str, Any] = dict(
        number=to_text(raw.get(NUMBER_KEYS[kind]), kind_config.default_number),
        date=to_date_text(raw.get("date")),
        status=to_text(raw.get("status"), kind_config.default_status),
        company=_company(raw),
        client=ClientInfo(
            name=to_text(raw.get("clientName"), "Client Name"),
            address=to_text(raw.get("clientAddress")),
            phone=to_text(raw.get("clientPhone")),
            email=to_text(raw.get("clientEmail")),
        ),
        items=_line_items(raw.get("items")),
        subtotal=to_number(raw.get("subtotal")),
        tax_enabled=bool(raw.get("gstEnabled")),
        tax_percentage=to_number(raw.get("gstPercentage")),
        tax_amount=to_number(raw.get("gstAmount")),
        discount=Discount(
            type="percentage" if raw.get("discountType") == "percentage" else "amount",
            value=to_number(raw.get("discount")),
            amount=to_number(raw.get("discountAmount")),
        ),
        grand_total=to_number(raw.get("grandTotal")),
        template=_template(raw),
        font_size=_font_size(raw),
        item_tax_enabled=bool(raw.get("itemGstEnabled")),
        notes=to_text(raw.get("notes") or raw.get("customMessage")),
        terms=to_text(raw.get("termsAndConditions")),
    )

    if kind == "invoice":
        return Invoice(
            secondary_date=to_date_text(raw.get("dueDate")),
            payment_method=to_text(raw.get("paymentMethod"), "Cash"),
            **common,
        )
    return Quotation(secondary_date=to_date_text(raw.get("validityDate")), **common)


def _find_milestone(payment: Mapping, project: Optional[Mapping]) -> Optional[Mapping]:
    milestone_id = payment.get("milestoneId")
    if not milestone_id or not project:
        return None
    for milestone in project.get("milestones") or []:
        if isinstance(milestone, Mapping) and milestone.get("id") == milestone_id:
            return milestone
    return None


def normalize_receipt(
    payment: Optional[Mapping],
    project: Optional[Mapping] = None,
    settings: Optional[Mapping] = None,
) -> Receipt:
    """Fold a payment, its project and the company settings into a single-line Receipt."""
    kind_config = get_kind_config("receipt")
    payment = payment or {}
    project = project or None
    settings = settings or {}

    amount = round(to_number(payment.get("amount")), 2)
    payment_type = "advance" if payment.get("type") == "advance" else "installment"
    milestone = _find_milestone(payment, project)

    description = "Advance Payment" if payment_type == "advance" else "Installment Payment"
    if milestone:
        description = f"{description} - {to_text(milestone.get('name'), 'Milestone')}"

    project_name = to_text(project.get("name")) if project else ""
    return Receipt(
        number=to_text(payment.get("id"), kind_config.default_number),
        date=to_date_text(payment.get("date")),
        status=kind_config.default_status,
        company=_company(settings),
        client=ClientInfo(name=to_text(payment.get("clientName") or project_name, "N/A")),
        items=[LineItem(description=description, quantity=1, rate=amount, amount=amount)],
        subtotal=amount,
        grand_total=amount,
        template=_template(settings),
        font_size=_font_size(settings),
        notes=to_text(payment.get("description") or payment.get("notes")),
        payment_type=payment_type,
        payment_method=to_text(payment.get("paymentMethod"), "Cash"),
        project_name=project_name,
        project_location=to_text(project.get("location")) if project else "",
        milestone_name=to_text(milestone.get("name")) if milestone else "",
        milestone_stage=to_text(milestone.get("stage"), "N/A") if milestone else "",
        generated_on=to_date_text(settings.get("generatedOn")) or date.today().isoformat(),
    )
