"""Company Schemas

Request/response schemas for tenant companies and their members.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from bizsuite.schemas.common import reject_null


class CompanyBase(BaseModel):
    """Base company fields"""

    name: str = Field(..., min_length=1, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    country: str = Field("ZA", min_length=2, max_length=2)
    currency: str = Field("ZAR", min_length=3, max_length=3)
    currency_symbol: str = Field("R", max_length=5)
    vat_rate: float = Field(0.15, ge=0, le=1)
    current_tax_year: int = Field(2024, ge=2000, le=2100)


class CompanyCreate(CompanyBase):
    """Schema for creating a company"""

    pass


class CompanyUpdate(BaseModel):
    """Schema for updating a company"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=100)
    tax_number: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    currency_symbol: Optional[str] = Field(None, max_length=5)
    vat_rate: Optional[float] = Field(None, ge=0, le=1)
    current_tax_year: Optional[int] = Field(None, ge=2000, le=2100)

    @field_validator(
        "name", "country", "currency", "currency_symbol", "vat_rate", "current_tax_year"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CompanyResponse(CompanyBase):
    """Company response with ID and timestamps"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class MemberCreate(BaseModel):
    """Schema for adding a member to a company"""

    username: str
    role: str = Field("member", pattern="^(owner|admin|member)$")


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    user_id: int
    role: str
