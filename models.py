from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, List, Optional, Literal, Union


class Record(BaseModel):
    """Base for the canonical render-time records; immutable once built."""
    model_config = ConfigDict(frozen=True)


class SignatureSettings(Record):
    type: Literal["none", "image", "text"] = "none"
    image: Optional[str] = None
    text: Optional[str] = None
    font: Optional[str] = None


class CompanyInfo(Record):
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    gst_id: str = ""
    logo: Optional[str] = None
    signature: Optional[SignatureSettings] = None


class ClientInfo(Record):
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""


class LineItem(Record):
    description: str = "-"
    measurement_value: float = 0.0
    unit: str = ""
    quantity: float = 0.0
    rate: float = 0.0
    amount: float = 0.0
    tax_rate: float = 0.0
    tax_value: float = 0.0

    @property
    def has_measurement(self) -> bool:
        return self.measurement_value > 0


class Discount(Record):
    type: Literal["amount", "percentage"] = "amount"
    value: float = 0.0
    amount: float = 0.0


class DocumentBase(Record):
    number: str
    date: Optional[str] = None
    # Due date for invoices, validity date for quotations, unused for receipts.
    secondary_date: Optional[str] = None
    status: str
    company: CompanyInfo
    client: ClientInfo
    items: List[LineItem] = Field(default_factory=list)

    subtotal: float = 0.0
    tax_enabled: bool = False
    tax_percentage: float = 0.0
    tax_amount: float = 0.0
    discount: Discount = Field(default_factory=Discount)
    grand_total: float = 0.0

    template: str = "classic"
    font_size: Literal["small", "medium", "large"] = "medium"
    item_tax_enabled: bool = False

    notes: str = ""
    terms: str = ""


class Invoice(DocumentBase):
    kind: Literal["invoice"] = "invoice"
    payment_method: str = "Cash"


class Quotation(DocumentBase):
    kind: Literal["quotation"] = "quotation"


class Receipt(DocumentBase):
    kind: Literal["receipt"] = "receipt"
    payment_type: Literal["advance", "installment"] = "installment"
    payment_method: str = "Cash"
    project_name: str = ""
    project_location: str = ""
    milestone_name: str = ""
    milestone_stage: str = ""
    generated_on: Optional[str] = None


Document = Annotated[Union[Invoice, Quotation, Receipt], Field(discriminator="kind")]
