"""Purchasing Schemas

Request/response schemas for purchase orders, purchases and supplier
payments.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import date, datetime

from bizsuite.schemas.common import reject_null

PO_STATUS_PATTERN = "^(draft|sent|approved|rejected)$"
PURCHASE_STATUS_PATTERN = "^(pending|received|partly-received|cancelled)$"


class PurchaseOrderLineItemBase(BaseModel):
    """Base purchase order line fields"""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(..., ge=0)
    inventory_item_id: Optional[int] = Field(None, gt=0)


class PurchaseOrderLineItemCreate(PurchaseOrderLineItemBase):
    pass


class PurchaseOrderLineItemResponse(PurchaseOrderLineItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    purchase_order_id: int
    total: float


class PurchaseOrderBase(BaseModel):
    """Base purchase order fields"""

    vendor: str = Field(..., min_length=1, max_length=255)
    vendor_contact: Optional[str] = Field(None, max_length=255)
    order_date: Optional[date] = None
    expected_delivery: Optional[date] = None
    tax_rate: float = Field(0.0, ge=0, le=1)
    discount: float = Field(0.0, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = Field(None, max_length=255)
    delivery_address: Optional[str] = None


class PurchaseOrderCreate(PurchaseOrderBase):
    """Schema for creating a purchase order"""

    status: str = Field("draft", pattern=PO_STATUS_PATTERN)
    line_items: List[PurchaseOrderLineItemCreate] = Field(..., min_length=1)


class PurchaseOrderUpdate(BaseModel):
    """Schema for updating a purchase order; ``line_items`` replaces all lines"""

    vendor: Optional[str] = Field(None, min_length=1, max_length=255)
    vendor_contact: Optional[str] = Field(None, max_length=255)
    expected_delivery: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    discount: Optional[float] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern=PO_STATUS_PATTERN)
    notes: Optional[str] = None
    terms: Optional[str] = Field(None, max_length=255)
    delivery_address: Optional[str] = None
    line_items: Optional[List[PurchaseOrderLineItemCreate]] = Field(None, min_length=1)

    @field_validator("vendor", "tax_rate", "discount", "status", "line_items")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class PurchaseOrderResponse(PurchaseOrderBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    po_number: str
    order_date: date
    status: str
    subtotal: float
    tax_amount: float
    total: float
    converted_to_purchase_id: Optional[int] = None
    line_items: List[PurchaseOrderLineItemResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None


class PurchaseLineItemBase(BaseModel):
    """Base purchase line fields"""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=100)
    inventory_item_id: Optional[int] = Field(None, gt=0)


class PurchaseLineItemCreate(PurchaseLineItemBase):
    pass


class PurchaseLineItemResponse(PurchaseLineItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    purchase_id: int
    received_quantity: float
    total: float


class PurchasePaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    payment_date: Optional[date] = None
    method: str = Field("bank_transfer", pattern="^(bank_transfer|card|cash|cheque|eft)$")
    reference: Optional[str] = Field(None, max_length=100)


class PurchasePaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    purchase_id: int
    amount: float
    payment_date: date
    method: str
    reference: Optional[str] = None


class PurchaseBase(BaseModel):
    """Base purchase fields"""

    vendor: str = Field(..., min_length=1, max_length=255)
    vendor_contact: Optional[str] = Field(None, max_length=255)
    purchase_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: float = Field(0.0, ge=0, le=1)
    discount: float = Field(0.0, ge=0)
    inventory_method: str = Field("perpetual", pattern="^(perpetual|periodic)$")
    supplier_invoice_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PurchaseCreate(PurchaseBase):
    """Schema for creating a purchase"""

    line_items: List[PurchaseLineItemCreate] = Field(..., min_length=1)


class PurchaseUpdate(BaseModel):
    """Schema for updating a purchase"""

    vendor_contact: Optional[str] = Field(None, max_length=255)
    due_date: Optional[date] = None
    supplier_invoice_number: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, pattern="^(pending|cancelled)$")

    @field_validator("status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)
    notes: Optional[str] = None


class PurchaseResponse(PurchaseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    purchase_number: str
    purchase_date: date
    status: str
    subtotal: float
    tax_amount: float
    total: float
    received_date: Optional[date] = None
    line_items: List[PurchaseLineItemResponse]
    payments: List[PurchasePaymentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReceiveLine(BaseModel):
    line_id: int = Field(..., gt=0)
    quantity: float = Field(..., gt=0)


class ReceiveRequest(BaseModel):
    """Goods received against purchase lines"""

    lines: List[ReceiveLine] = Field(..., min_length=1)
    received_date: Optional[date] = None


class PurchaseStatusResponse(BaseModel):
    """Payment progress of a purchase"""

    is_paid: bool
    is_partially_paid: bool
    remaining_balance: float
    total_paid: float
    payment_progress: float
    badge: str
