from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class BillStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"

    def __str__(self) -> str:
        return self.value


class BillItem(BaseModel):
    item_type: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    note: str = ""

    @property
    def description(self) -> str:
        return self.item_type

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price


class ItemTemplate(BaseModel):
    id: int = 0
    item_type: str = ""
    unit_price: Decimal = Decimal("0")

    def to_bill_item(self) -> BillItem:
        return BillItem(item_type=self.item_type, quantity=Decimal("1"), unit_price=self.unit_price)


class Bill(BaseModel):
    id: int = 0  # 0 until the bill is first saved
    client_id: int = 0
    date: datetime = Field(default_factory=datetime.now)
    due_date: datetime = Field(default_factory=datetime.now)
    items: list[BillItem] = []
    reference: str = ""
    iban: str = ""
    notes: str = ""
    status: BillStatus = BillStatus.DRAFT
    pdf_data: bytes | None = Field(default=None, repr=False)
    pdf_created_at: datetime | None = None

    @model_validator(mode="after")
    def _pdf_pair(self) -> Bill:
        if (self.pdf_data is None) != (self.pdf_created_at is None):
            raise ValueError("pdf_data and pdf_created_at must be set together")
        return self

    @property
    def total(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal("0"))

    @property
    def has_pdf(self) -> bool:
        return self.pdf_data is not None

    def with_pdf(self, pdf_data: bytes, created_at: datetime) -> Bill:
        """Return a copy carrying a freshly generated PDF and its generation instant."""
        return self.model_copy(update={"pdf_data": pdf_data, "pdf_created_at": created_at})
