"""CRM Schemas

Request/response schemas for deals and tickets.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import date, datetime

from bizsuite.schemas.common import reject_null

DEAL_STAGES = ("lead", "qualified", "proposal", "negotiation", "closed")
DEAL_STAGE_PATTERN = "^(lead|qualified|proposal|negotiation|closed)$"
TICKET_STATUS_PATTERN = "^(todo|in-progress|completed|on-hold)$"
TICKET_PRIORITY_PATTERN = "^(low|medium|high|urgent)$"


class DealBase(BaseModel):
    """Base deal fields"""

    title: str = Field(..., min_length=1, max_length=255)
    contact_id: Optional[int] = Field(None, gt=0)
    customer: str = Field(..., min_length=1, max_length=255)
    value: float = Field(0.0, ge=0)
    stage: str = Field("lead", pattern=DEAL_STAGE_PATTERN)
    probability: int = Field(0, ge=0, le=100)
    expected_close_date: Optional[date] = None
    notes: Optional[str] = None


class DealCreate(DealBase):
    pass


class DealUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    customer: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[float] = Field(None, ge=0)
    stage: Optional[str] = Field(None, pattern=DEAL_STAGE_PATTERN)
    probability: Optional[int] = Field(None, ge=0, le=100)
    expected_close_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("title", "customer", "value", "stage", "probability")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class DealResponse(DealBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class PipelineStage(BaseModel):
    stage: str
    count: int
    value: float


class PipelineResponse(BaseModel):
    """Deals grouped by stage"""

    stages: List[PipelineStage]
    total_deals: int
    total_value: float
    weighted_value: float


class TicketBase(BaseModel):
    """Base ticket fields"""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    contact_id: Optional[int] = Field(None, gt=0)
    assigned_to: Optional[str] = Field(None, max_length=255)
    status: str = Field("todo", pattern=TICKET_STATUS_PATTERN)
    priority: str = Field("medium", pattern=TICKET_PRIORITY_PATTERN)
    due_date: Optional[date] = None


class TicketCreate(TicketBase):
    pass


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = Field(None, pattern=TICKET_STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=TICKET_PRIORITY_PATTERN)
    due_date: Optional[date] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class TicketResponse(TicketBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
