"""
Database Schemas for I-Voice invoicing

Each Pydantic model represents a collection in MongoDB. Collection name is the lowercase of the class name.

The same records also live in the per-user local JSON snapshot, where keys are camelCase
(invoiceNumber, partyId, gstNumber, createdAt). Every persisted model accepts both spellings on input,
dumps snake_case by default and camelCase with by_alias=True.
"""

import datetime as dt
import json
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_GST_RATE = Decimal("18")
NOTICE_SECONDS = 5.0

RecordId = Union[int, str]


def same_id(a, b) -> bool:
    """Local ids are ints, remote ids are ObjectId strings; compare them as text."""
    if a is None or b is None:
        return False
    return str(a) == str(b)


def _either_schema(name: str) -> AliasChoices:
    return AliasChoices(name, to_camel(name))


class Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=_either_schema, serialization_alias=to_camel),
        populate_by_name=True,
    )


class Entity(Record):
    id: Optional[RecordId] = None
    created_at: Optional[dt.datetime] = None

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v):
        # pymongo hands back naive UTC datetimes
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v


class User(BaseModel):
    email: EmailStr
    name: str
    password_hash: str
    is_active: bool = True


class CurrentUser(BaseModel):
    id: str
    name: str


class Party(Entity):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    gst_number: Optional[str] = Field(None, description="GSTIN")
    address: Optional[str] = None
    state: Optional[str] = Field(None, description="Region / place of supply")


class Item(Entity):
    name: str = Field(..., min_length=1)
    hsn: Optional[str] = Field(None, description="HSN/SAC code")
    unit: Optional[str] = None
    rate: Decimal = Field(Decimal("0"), ge=0)
    gst_rate: Decimal = Field(DEFAULT_GST_RATE, ge=0)
    stock: int = Field(0, ge=0)

    @field_validator("gst_rate", mode="before")
    @classmethod
    def _default_gst(cls, v):
        return DEFAULT_GST_RATE if v in (None, "") else v

    @field_validator("stock", mode="before")
    @classmethod
    def _default_stock(cls, v):
        return 0 if v in (None, "") else v


class LineItem(Record):
    """One invoice row. Name, HSN and GST rate are snapshots taken when the invoice was saved."""
    item_id: Optional[RecordId] = None
    qty: Decimal = Field(..., gt=0)
    rate: Decimal = Field(..., ge=0)
    total: Decimal = Decimal("0")
    gst_rate: Decimal = Field(DEFAULT_GST_RATE, ge=0)
    hsn: Optional[str] = ""
    name: Optional[str] = ""

    @field_validator("gst_rate", mode="before")
    @classmethod
    def _default_gst(cls, v):
        return DEFAULT_GST_RATE if v in (None, "") else v

    @model_validator(mode="after")
    def _derive_total(self):
        self.total = self.qty * self.rate
        return self


class Invoice(Entity):
    invoice_number: str
    party_id: Optional[RecordId] = None
    date: dt.date
    payment_type: str = "Credit"
    po_number: Optional[str] = None
    po_date: Optional[str] = None
    e_way_bill: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    received: Decimal = Field(Decimal("0"), ge=0)
    # derived from items and received on every validation
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    paid: bool = False

    @field_validator("invoice_number", mode="before")
    @classmethod
    def _number_as_text(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("items", mode="before")
    @classmethod
    def _decode_items_blob(cls, v):
        # the remote store keeps line items as a serialized string
        if isinstance(v, str):
            return json.loads(v or "[]")
        return v

    @field_validator("received", mode="before")
    @classmethod
    def _default_received(cls, v):
        return 0 if v in (None, "") else v

    @model_validator(mode="after")
    def _derive_totals(self):
        from calculator import compute_invoice_totals

        totals = compute_invoice_totals(self.items, self.received)
        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.total = totals.total
        self.balance = totals.balance
        self.paid = totals.paid
        return self


class DraftLine(Record):
    """An editable row; incomplete rows are dropped on save."""
    item_id: Optional[RecordId] = None
    qty: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    gst_rate: Optional[Decimal] = Field(None, description="Overrides the catalog GST rate")

    @field_validator("item_id", "qty", "rate", "gst_rate", mode="before")
    @classmethod
    def _blank_is_missing(cls, v):
        return None if v == "" else v


class InvoiceDraft(Record):
    number_mode: Literal["auto", "manual"] = "auto"
    invoice_number: Optional[str] = None
    party_id: Optional[RecordId] = None
    date: Optional[dt.date] = None
    payment_type: str = "Credit"
    po_number: Optional[str] = None
    po_date: Optional[str] = None
    e_way_bill: Optional[str] = None
    received: Decimal = Field(Decimal("0"), ge=0)
    rows: List[DraftLine] = Field(default_factory=lambda: [DraftLine()])

    @field_validator("party_id", "date", mode="before")
    @classmethod
    def _blank_is_missing(cls, v):
        return None if v == "" else v

    @field_validator("received", mode="before")
    @classmethod
    def _default_received(cls, v):
        return 0 if v in (None, "") else v


class Notice(BaseModel):
    level: Literal["info", "success", "warning", "error"] = "info"
    message: str
    dismiss_after: float = NOTICE_SECONDS


class ResolvedLine(BaseModel):
    name: str
    hsn: str
    qty: Decimal
    unit: str
    rate: Decimal
    gst_rate: Decimal
    tax: Decimal
    amount: Decimal


class InvoiceView(BaseModel):
    """Everything the document renderer needs, with party and items already looked up."""
    invoice: Invoice
    party: Optional[Party] = None
    lines: List[ResolvedLine]
    amount_in_words: str


class Letterhead(BaseModel):
    name: str = "I-VOICE"
    tagline: str = "INVOICE MANAGEMENT SYSTEM"
    footer: str = "Powered by: I-Voice"
    signatory: str = "I-Voice"
    terms: List[str] = [
        "Interest will be charged @22% p.a on bill if not paid as agreed upon.",
        "In case of any defect, kindly inform within 15 days from delivery.",
        "Subject to your city jurisdiction only.",
    ]
