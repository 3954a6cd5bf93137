"""Invoice Schemas

Request/response schemas for invoices, credit notes, payments and
recurring invoice templates.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import date, datetime

from bizsuite.core.config import settings
from bizsuite.schemas.common import reject_null

INVOICE_STATUS_PATTERN = "^(draft|paid|unpaid|partly-paid|overdue)$"
PAYMENT_METHOD_PATTERN = "^(bank_transfer|card|cash|cheque|eft)$"
FREQUENCY_PATTERN = "^(weekly|monthly|quarterly|yearly)$"


class InvoiceLineItemBase(BaseModel):
    """Base invoice line item fields"""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., gt=0)
    unit: str = Field("each", max_length=30)
    unit_price: float = Field(..., ge=0)
    inventory_item_id: Optional[int] = Field(None, gt=0)


class InvoiceLineItemCreate(InvoiceLineItemBase):
    """Schema for creating an invoice line item"""

    pass


class InvoiceLineItemResponse(InvoiceLineItemBase):
    """Invoice line item response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    total: float


class InvoicePaymentCreate(BaseModel):
    """Schema for recording a payment against an invoice"""

    amount: float = Field(..., gt=0)
    payment_date: Optional[date] = None
    method: str = Field("bank_transfer", pattern=PAYMENT_METHOD_PATTERN)
    reference: Optional[str] = Field(None, max_length=100)


class InvoicePaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    amount: float
    payment_date: date
    method: str
    reference: Optional[str] = None


class InvoiceBase(BaseModel):
    """Base invoice fields"""

    contact_id: Optional[int] = Field(None, gt=0)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    project_name: Optional[str] = Field(None, max_length=255)
    project_address: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: float = Field(0.0, ge=0, le=1)
    discount: float = Field(0.0, ge=0)
    payment_terms: str = Field("Net 30", max_length=100)
    notes: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    """Schema for creating an invoice"""

    status: str = Field("unpaid", pattern="^(draft|unpaid)$")
    line_items: List[InvoiceLineItemCreate] = Field(..., min_length=1)


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice; ``line_items`` replaces all lines"""

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    project_name: Optional[str] = Field(None, max_length=255)
    project_address: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    discount: Optional[float] = Field(None, ge=0)
    payment_terms: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(draft|unpaid)$")
    line_items: Optional[List[InvoiceLineItemCreate]] = Field(None, min_length=1)

    @field_validator(
        "client_name", "issue_date", "due_date", "tax_rate", "discount", "status", "line_items"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CreditNoteCreate(BaseModel):
    """Credit note against an invoice; without lines the full invoice is credited"""

    reason: Optional[str] = None
    issue_date: Optional[date] = None
    line_items: Optional[List[InvoiceLineItemCreate]] = Field(None, min_length=1)


class InvoiceResponse(InvoiceBase):
    """Invoice response with items, payments and amount due"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    invoice_number: str
    invoice_type: str
    quote_id: Optional[int] = None
    original_invoice_id: Optional[int] = None
    issue_date: date
    due_date: date
    status: str
    subtotal: float
    tax_amount: float
    total: float
    amount_due: float = 0.0
    line_items: List[InvoiceLineItemResponse]
    payments: List[InvoicePaymentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class RecurringLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    quantity: float
    unit: str
    unit_price: float
    total: float


class RecurringInvoiceBase(BaseModel):
    """Base recurring invoice fields"""

    contact_id: Optional[int] = Field(None, gt=0)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    frequency: str = Field(..., pattern=FREQUENCY_PATTERN)
    start_date: date
    end_date: Optional[date] = None
    tax_rate: float = Field(0.0, ge=0, le=1)
    discount: float = Field(0.0, ge=0)
    payment_terms_days: int = Field(settings.DEFAULT_PAYMENT_TERMS_DAYS, ge=0, le=365)
    notes: Optional[str] = None


class RecurringInvoiceCreate(RecurringInvoiceBase):
    """Schema for creating a recurring invoice template"""

    line_items: List[InvoiceLineItemCreate] = Field(..., min_length=1)


class RecurringInvoiceUpdate(BaseModel):
    """Schema for updating a recurring invoice template"""

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    frequency: Optional[str] = Field(None, pattern=FREQUENCY_PATTERN)
    end_date: Optional[date] = None
    next_invoice_date: Optional[date] = None
    is_active: Optional[bool] = None
    payment_terms_days: Optional[int] = Field(None, ge=0, le=365)
    notes: Optional[str] = None

    @field_validator(
        "client_name", "frequency", "next_invoice_date", "is_active", "payment_terms_days"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class RecurringInvoiceResponse(RecurringInvoiceBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    next_invoice_date: date
    last_generated_date: Optional[date] = None
    is_active: bool
    subtotal: float
    tax_amount: float
    total: float
    line_items: List[RecurringLineItemResponse]


class RecurringRunResponse(BaseModel):
    """Result of a recurring invoice generation run"""

    success: bool = True
    message: str
    count: int
    invoice_numbers: List[str] = []
    errors: List[str] = []
