"""Quote Schemas

Request/response schemas for quotes and their line items.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Any
from datetime import date, datetime

from bizsuite.schemas.common import reject_null

INDUSTRY_PATTERN = "^(construction|plumbing|electrical|professional-services)$"
QUOTE_STATUS_PATTERN = "^(draft|sent|accepted|declined|converted)$"


class QuoteLineItemBase(BaseModel):
    """Base quote line item fields"""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., gt=0)
    unit: str = Field("each", max_length=30)
    unit_price: float = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=100)


class QuoteLineItemCreate(QuoteLineItemBase):
    """Schema for creating a quote line item"""

    pass


class QuoteLineItemResponse(QuoteLineItemBase):
    """Quote line item response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    quote_id: int
    total: float


class QuoteBase(BaseModel):
    """Base quote fields"""

    contact_id: Optional[int] = Field(None, gt=0)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    project_name: Optional[str] = Field(None, max_length=255)
    project_address: Optional[str] = None
    industry: str = Field("construction", pattern=INDUSTRY_PATTERN)
    start_date: Optional[date] = None
    estimated_duration: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    industry_fields: dict[str, Any] = Field(default_factory=dict)
    tax_rate: float = Field(0.0, ge=0, le=1)
    discount: float = Field(0.0, ge=0)
    valid_until: Optional[date] = None


class QuoteCreate(QuoteBase):
    """Schema for creating a quote"""

    line_items: List[QuoteLineItemCreate] = Field(..., min_length=1)


class QuoteUpdate(BaseModel):
    """Schema for updating a quote; ``line_items`` replaces all lines"""

    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    project_name: Optional[str] = Field(None, max_length=255)
    project_address: Optional[str] = None
    industry: Optional[str] = Field(None, pattern=INDUSTRY_PATTERN)
    start_date: Optional[date] = None
    estimated_duration: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    industry_fields: Optional[dict[str, Any]] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    discount: Optional[float] = Field(None, ge=0)
    valid_until: Optional[date] = None
    status: Optional[str] = Field(None, pattern=QUOTE_STATUS_PATTERN)
    line_items: Optional[List[QuoteLineItemCreate]] = Field(None, min_length=1)

    @field_validator("client_name", "tax_rate", "discount", "status", "line_items")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class QuoteResponse(QuoteBase):
    """Quote response with items"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    quote_number: str
    status: str
    subtotal: float
    tax_amount: float
    total: float
    converted_invoice_id: Optional[int] = None
    line_items: List[QuoteLineItemResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None


class QuoteConvertRequest(BaseModel):
    """Options when turning a quote into an invoice"""

    issue_date: Optional[date] = None
    due_date: Optional[date] = None
