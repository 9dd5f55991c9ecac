import logging
from dataclasses import dataclass

from models import DocumentBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TotalsSummary:
    subtotal: float
    item_tax_total: float
    document_tax_amount: float
    discount_amount: float
    grand_total: float


def present_totals(document: DocumentBase) -> TotalsSummary:
    """
    Pre-aggregate the figures the totals panel prints.

    Only the item-level tax sum is derived here; every other figure is the
    caller's own value. The grand total is not reconciled against
    subtotal + taxes - discount. A mismatch is logged and rendered as given.
    """
    item_tax_total = 0.0
    if document.item_tax_enabled:
        item_tax_total = sum(item.tax_value for item in document.items)

    tax_amount = document.tax_amount if document.tax_enabled else 0.0
    expected = document.subtotal + item_tax_total + tax_amount - document.discount.amount
    if abs(expected - document.grand_total) > 0.005:
        logger.debug(
            f"Grand total {document.grand_total:.2f} differs from computed {expected:.2f} "
            f"for document {document.number}"
        )

    return TotalsSummary(
        subtotal=document.subtotal,
        item_tax_total=item_tax_total,
        document_tax_amount=document.tax_amount,
        discount_amount=document.discount.amount,
        grand_total=document.grand_total,
    )
