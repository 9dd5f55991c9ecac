import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from config import config
from models import DocumentBase, LineItem


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    width: float
    align: str
    bold: bool = False


@dataclass(frozen=True)
class TableSchema:
    columns: Tuple[Column, ...]

    @property
    def headers(self) -> List[str]:
        return [column.header for column in self.columns]

    @property
    def widths(self) -> List[float]:
        return [column.width for column in self.columns]

    @property
    def alignments(self) -> List[str]:
        return [column.align for column in self.columns]

    @property
    def keys(self) -> List[str]:
        return [column.key for column in self.columns]


# Column widths in mm, keyed by (has_measurement, has_item_tax). Each row sums to 180.
COLUMN_WIDTHS: Dict[Tuple[bool, bool], Dict[str, float]] = {
    (False, False): {"description": 70, "quantity": 25, "rate": 40, "amount": 45},
    (False, True): {"description": 70, "quantity": 20, "rate": 30, "tax": 25, "amount": 35},
    (True, False): {"description": 45, "area": 25, "unit": 20, "quantity": 20, "rate": 35, "amount": 35},
    (True, True): {"description": 45, "area": 20, "unit": 18, "quantity": 15, "rate": 27, "tax": 25, "amount": 30},
}


def has_measurement(document: DocumentBase) -> bool:
    return any(item.has_measurement for item in document.items)


def compute_schema(document: DocumentBase) -> TableSchema:
    """Pick the active item-table columns for this document, in display order."""
    measured = has_measurement(document)
    item_tax = document.item_tax_enabled
    widths = COLUMN_WIDTHS[(measured, item_tax)]
    currency = config.CURRENCY_LABEL

    columns = [Column("description", "Description", widths["description"], "LEFT")]
    if measured:
        columns.append(Column("area", "Area", widths["area"], "CENTER"))
        columns.append(Column("unit", "Unit", widths["unit"], "CENTER"))
    columns.append(Column("quantity", "Qty", widths["quantity"], "CENTER"))
    columns.append(Column("rate", f"Rate ({currency})", widths["rate"], "RIGHT"))
    if item_tax:
        columns.append(Column("tax", "GST", widths["tax"], "CENTER"))
    columns.append(Column("amount", f"Amount ({currency})", widths["amount"], "RIGHT", bold=True))
    return TableSchema(columns=tuple(columns))


def format_number(value: float) -> str:
    """Whole numbers without decimals, anything else in its shortest form."""
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_cell(item: LineItem, key: str) -> str:
    if key == "description":
        return item.description
    if key == "area":
        return format_number(item.measurement_value) if item.measurement_value else "-"
    if key == "unit":
        return item.unit or "-"
    if key == "quantity":
        return format_number(item.quantity)
    if key == "rate":
        return f"{item.rate:.2f}"
    if key == "tax":
        return f"{round_half_up(item.tax_rate)}%\n{item.tax_value:.2f}"
    if key == "amount":
        return f"{item.amount:.2f}"
    raise KeyError(f"Unknown column '{key}'")


def build_rows(document: DocumentBase, schema: TableSchema) -> List[List[str]]:
    keys = schema.keys
    return [[format_cell(item, key) for key in keys] for item in document.items]
