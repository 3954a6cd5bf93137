"""Payroll API Endpoints

Employees, tax brackets, payroll processing and the EMP201 summary.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from typing import Optional
from datetime import date
from bizsuite.api.deps import bad_request, get_current_company, require_company_admin
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.payroll import Employee, PayrollRecord, TaxBracket
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.payroll import (
    BulkPayrollRequest,
    BulkPayrollResponse,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    EMP201Response,
    PayrollCalculateRequest,
    PayrollCalculationResponse,
    PayrollRecordCreate,
    PayrollRecordResponse,
    TaxBracketCreate,
    TaxBracketResponse,
)
from bizsuite.services.payroll import PayrollService

router = APIRouter(prefix="/api/payroll", tags=["payroll"])


async def get_employee_or_404(db: AsyncSession, company_id: int, employee_id: int) -> Employee:
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.company_id == company_id)
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


@router.get("/employees", response_model=PaginatedResponse[EmployeeResponse])
async def list_employees(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    query = select(Employee).where(Employee.company_id == company.id)
    if is_active is not None:
        query = query.where(Employee.is_active.is_(is_active))
    if department:
        query = query.where(Employee.department == department)
    if search:
        query = query.where(
            or_(
                Employee.first_name.ilike(f"%{search}%"),
                Employee.last_name.ilike(f"%{search}%"),
                Employee.employee_number.ilike(f"%{search}%"),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Employee.employee_number).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[EmployeeResponse.model_validate(e) for e in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return EmployeeResponse.model_validate(
        await get_employee_or_404(db, company.id, employee_id)
    )


@router.post("/employees", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    employee_data: EmployeeCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(Employee.id).where(
            Employee.company_id == company.id,
            Employee.employee_number == employee_data.employee_number,
        )
    )
    if existing.first():
        raise HTTPException(
            status_code=400,
            detail=f"Employee number {employee_data.employee_number} already exists",
        )

    employee = Employee(**employee_data.model_dump(), company_id=company.id, is_active=True)
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return EmployeeResponse.model_validate(employee)


@router.put("/employees/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    employee_data: EmployeeUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    employee = await get_employee_or_404(db, company.id, employee_id)

    update_data = employee_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(employee, field, value)

    await db.commit()
    await db.refresh(employee)
    return EmployeeResponse.model_validate(employee)


@router.delete("/employees/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Delete an employee without payroll history; others should be deactivated"""
    result = await db.execute(
        select(Employee)
        .options(selectinload(Employee.payroll_records))
        .where(Employee.id == employee_id, Employee.company_id == company.id)
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    if employee.payroll_records:
        raise HTTPException(
            status_code=400,
            detail="Employees with payroll records cannot be deleted, deactivate them instead",
        )
    await db.delete(employee)
    await db.commit()
    return None


# ---------------------------------------------------------------------------
# Tax brackets
# ---------------------------------------------------------------------------


@router.get("/tax-brackets", response_model=list[TaxBracketResponse])
async def list_tax_brackets(
    year: Optional[int] = None,
    country: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    query = select(TaxBracket).where(TaxBracket.company_id == company.id)
    if year:
        query = query.where(TaxBracket.year == year)
    if country:
        query = query.where(TaxBracket.country == country.upper())

    query = query.order_by(
        TaxBracket.country, TaxBracket.year, TaxBracket.age_group, TaxBracket.bracket_min
    )
    result = await db.execute(query)
    return [TaxBracketResponse.model_validate(b) for b in result.scalars().all()]


@router.post(
    "/tax-brackets",
    response_model=TaxBracketResponse,
    status_code=201,
    dependencies=[Depends(require_company_admin)],
)
async def create_tax_bracket(
    bracket_data: TaxBracketCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    data = bracket_data.model_dump()
    data["country"] = data["country"].upper()
    bracket = TaxBracket(**data, company_id=company.id)
    db.add(bracket)
    await db.commit()
    await db.refresh(bracket)
    return TaxBracketResponse.model_validate(bracket)


@router.post(
    "/tax-brackets/seed-defaults",
    response_model=list[TaxBracketResponse],
    status_code=201,
    dependencies=[Depends(require_company_admin)],
)
async def seed_default_tax_brackets(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Load the ZA 2024 brackets for all three age groups"""
    try:
        brackets = await PayrollService.seed_default_brackets(db, company.id)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()
    return [TaxBracketResponse.model_validate(b) for b in brackets]


@router.delete(
    "/tax-brackets/{bracket_id}",
    status_code=204,
    dependencies=[Depends(require_company_admin)],
)
async def delete_tax_bracket(
    bracket_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(TaxBracket).where(TaxBracket.id == bracket_id, TaxBracket.company_id == company.id)
    )
    bracket = result.scalar_one_or_none()
    if not bracket:
        raise HTTPException(status_code=404, detail="Tax bracket not found")
    await db.delete(bracket)
    await db.commit()
    return None


# ---------------------------------------------------------------------------
# Payroll processing
# ---------------------------------------------------------------------------


@router.post("/calculate", response_model=PayrollCalculationResponse)
async def calculate_payroll(
    request: PayrollCalculateRequest,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Preview a payslip without storing it"""
    return await PayrollService.calculate(db, company, **request.model_dump())


@router.get("/records", response_model=PaginatedResponse[PayrollRecordResponse])
async def list_payroll_records(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    employee_id: Optional[int] = None,
    period_from: Optional[date] = None,
    period_to: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    query = select(PayrollRecord).where(PayrollRecord.company_id == company.id)
    if employee_id:
        query = query.where(PayrollRecord.employee_id == employee_id)
    if period_from:
        query = query.where(PayrollRecord.period_start >= period_from)
    if period_to:
        query = query.where(PayrollRecord.period_start <= period_to)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = (
        query.order_by(PayrollRecord.period_start.desc(), PayrollRecord.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[PayrollRecordResponse.model_validate(r) for r in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/records", response_model=PayrollRecordResponse, status_code=201)
async def create_payroll_record(
    record_data: PayrollRecordCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Process one employee's pay for a period"""
    result = await db.execute(
        select(Employee).where(
            Employee.id == record_data.employee_id, Employee.company_id == company.id
        )
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=400, detail="Employee not found")

    try:
        record = await PayrollService.process_employee(
            db,
            company,
            employee,
            **record_data.model_dump(exclude={"employee_id"}),
        )
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()
    await db.refresh(record)
    return PayrollRecordResponse.model_validate(record)


@router.post("/bulk", response_model=BulkPayrollResponse, status_code=201)
async def process_bulk_payroll(
    request: BulkPayrollRequest,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Process pay for every active employee in the period"""
    records, skipped = await PayrollService.process_bulk(
        db, company, request.period_start, request.period_end, request.payment_date
    )
    await db.commit()
    return BulkPayrollResponse(
        processed=len(records),
        skipped=skipped,
        records=[PayrollRecordResponse.model_validate(r) for r in records],
    )


@router.get("/emp201", response_model=EMP201Response)
async def get_emp201(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Monthly PAYE and UIF declaration totals"""
    return await PayrollService.emp201(db, company.id, year, month)
