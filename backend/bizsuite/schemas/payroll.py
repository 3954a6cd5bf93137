"""Payroll Schemas

Request/response schemas for employees, tax brackets and payroll runs.
"""

from pydantic import BaseModel, Field, ConfigDict, model_validator, field_validator
from typing import Optional, List
from datetime import date, datetime

from bizsuite.schemas.common import reject_null

AGE_GROUP_PATTERN = "^(under_65|65_to_75|over_75)$"


class EmployeeBase(BaseModel):
    """Base employee fields"""

    employee_number: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    id_number: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    email: Optional[str] = Field(None, max_length=255)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    basic_salary: float = Field(..., ge=0)
    start_date: Optional[date] = None


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    id_number: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    email: Optional[str] = Field(None, max_length=255)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    basic_salary: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "basic_salary", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class EmployeeResponse(EmployeeBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    is_active: bool
    created_at: datetime


class TaxBracketBase(BaseModel):
    """Bracket with ``rate`` as a percentage"""

    year: int = Field(..., ge=2000, le=2100)
    country: str = Field(..., min_length=2, max_length=2)
    age_group: str = Field("under_65", pattern=AGE_GROUP_PATTERN)
    bracket_min: float = Field(..., ge=0)
    bracket_max: Optional[float] = Field(None, gt=0)
    rate: float = Field(..., ge=0, le=100)
    threshold: float = Field(0.0, ge=0)
    rebate: float = Field(0.0, ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.bracket_max is not None and self.bracket_max <= self.bracket_min:
            raise ValueError("bracket_max must be greater than bracket_min")
        return self


class TaxBracketCreate(TaxBracketBase):
    pass


class TaxBracketResponse(TaxBracketBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int


class PayrollCalculateRequest(BaseModel):
    """Ad-hoc payroll calculation, without storing anything"""

    basic_salary: float = Field(..., ge=0)
    age: int = Field(30, ge=14, le=120)
    allowances: float = Field(0.0, ge=0)
    overtime: float = Field(0.0, ge=0)
    bonuses: float = Field(0.0, ge=0)
    other_deductions: float = Field(0.0, ge=0)
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    year: Optional[int] = None


class DeductionLine(BaseModel):
    name: str
    amount: float


class PayrollCalculationResponse(BaseModel):
    basic_salary: float
    allowances: float
    overtime: float
    bonuses: float
    gross_salary: float
    paye: float
    uif: float
    napsa: float
    nhima: float
    nssa: float
    other_deductions: float
    net_salary: float
    deductions: List[DeductionLine]


class PayrollRecordCreate(BaseModel):
    """Process pay for one employee and period"""

    employee_id: int = Field(..., gt=0)
    period_start: date
    period_end: date
    payment_date: Optional[date] = None
    allowances: float = Field(0.0, ge=0)
    overtime: float = Field(0.0, ge=0)
    bonuses: float = Field(0.0, ge=0)
    other_deductions: float = Field(0.0, ge=0)

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class BulkPayrollRequest(BaseModel):
    """Process pay for every active employee"""

    period_start: date
    period_end: date
    payment_date: Optional[date] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PayrollRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    employee_id: int
    period_start: date
    period_end: date
    payment_date: Optional[date] = None
    basic_salary: float
    allowances: float
    overtime: float
    bonuses: float
    gross_salary: float
    paye: float
    uif: float
    napsa: float
    nhima: float
    nssa: float
    other_deductions: float
    net_salary: float
    status: str


class BulkPayrollResponse(BaseModel):
    processed: int
    skipped: List[str] = []
    records: List[PayrollRecordResponse]


class EMP201Response(BaseModel):
    """Monthly employer declaration totals"""

    year: int
    month: int
    employee_count: int
    total_gross: float
    total_paye: float
    uif_employee: float
    uif_employer: float
    total_uif: float
    total_due: float
    payment_reference: str
