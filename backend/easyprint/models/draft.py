from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from easyprint.models.enums import BindingType, DeliveryType, PaperSize, PrintMode, ServiceType
from easyprint.services.pricing import PriceEngine

_engine = PriceEngine()


class DraftFile(BaseModel):
    name: str
    url: str
    size_bytes: int = 0
    pages: int = Field(default=1, ge=1)
    mime_type: str = ""


class Contact(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    phone: str = ""
    email: str = ""


class PaymentProof(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    reference_number: str = ""
    screenshot_url: str = ""


class OrderDraft(BaseModel):
    """Everything a customer has chosen so far in one checkout.

    ``computed_total`` is never stored: every read prices the current field values.
    """

    model_config = ConfigDict(validate_assignment=True)

    service_type: Optional[ServiceType] = None
    files: List[DraftFile] = Field(default_factory=list)
    paper_size: Optional[PaperSize] = PaperSize.A4
    print_mode: Optional[PrintMode] = PrintMode.BLACK_AND_WHITE
    copies: int = 1
    binding: BindingType = BindingType.NONE
    rush_package: Optional[str] = None
    delivery_type: DeliveryType = DeliveryType.CAMPUS
    delivery_location: str = ""
    special_instructions: str = ""
    contact: Contact = Field(default_factory=Contact)
    payment_proof: PaymentProof = Field(default_factory=PaymentProof)

    @computed_field
    @property
    def total_pages(self) -> int:
        return PriceEngine.total_pages(self.files)

    @computed_field
    @property
    def computed_total(self) -> float:
        return _engine.compute_total(self)

    def price_breakdown(self) -> dict:
        return _engine.estimate(self)
