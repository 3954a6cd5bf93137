"""Contact Schemas

Request/response schemas for customer and supplier contacts.
"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from bizsuite.schemas.common import reject_null


class ContactBase(BaseModel):
    """Base contact fields"""

    name: str = Field(..., min_length=1, max_length=255)
    contact_type: str = Field("customer", pattern="^(customer|supplier|both)$")
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    tax_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class ContactCreate(ContactBase):
    """Schema for creating a contact"""

    pass


class ContactUpdate(BaseModel):
    """Schema for updating a contact"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_type: Optional[str] = Field(None, pattern="^(customer|supplier|both)$")
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    tax_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("name", "contact_type")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class ContactResponse(ContactBase):
    """Contact response with ID and timestamps"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
