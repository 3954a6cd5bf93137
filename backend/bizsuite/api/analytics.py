"""Analytics API Endpoints

Formula evaluation, business calculators, VAT and aging reports, and dashboard.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Optional
from datetime import date
from bizsuite.api.deps import bad_request, get_current_company, get_current_user
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.user import User
from bizsuite.schemas.analytics import (
    CALCULATOR_REQUESTS,
    AgingReportResponse,
    DashboardResponse,
    FormulaRequest,
    FormulaResponse,
    VATReportResponse,
)
from bizsuite.services import reports
from bizsuite.services.calculators import CALCULATORS
from bizsuite.services.formulas import (
    FORMULA_FUNCTIONS,
    calculate_formula,
    format_formula_result,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/formulas")
async def list_formulas():
    """Supported formula names with descriptions"""
    return FORMULA_FUNCTIONS


@router.post("/formula", response_model=FormulaResponse)
async def evaluate_formula(
    request: FormulaRequest,
    current_user: User = Depends(get_current_user),
):
    """Evaluate a spreadsheet-style formula over the supplied rows"""
    try:
        value = calculate_formula(
            request.formula,
            request.data,
            request.column,
            request.params.model_dump(exclude_none=True),
        )
    except BusinessRuleError as e:
        raise bad_request(e)
    return FormulaResponse(
        formula=request.formula.upper(),
        value=value,
        formatted=format_formula_result(value, request.formula),
    )


@router.get("/calculators")
async def list_calculators():
    return {
        name: list(request_model.model_fields) for name, request_model in CALCULATOR_REQUESTS.items()
    }


@router.post("/calculators/{name}")
async def run_calculator(
    name: str,
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
):
    """Run one of the business calculators with its named inputs"""
    request_model = CALCULATOR_REQUESTS.get(name)
    if request_model is None:
        raise HTTPException(status_code=404, detail="Calculator not found")
    try:
        request = request_model.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
    try:
        return CALCULATORS[name](**request.model_dump())
    except BusinessRuleError as e:
        raise bad_request(e)


@router.get("/vat-report", response_model=VATReportResponse)
async def vat_report(
    start: date = Query(...),
    end: date = Query(...),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Output VAT on sales against input VAT on purchases for a period"""
    if end < start:
        raise HTTPException(status_code=400, detail="End date cannot be before the start date")
    return await reports.vat_report(db, company.id, start, end)


@router.get("/ar-aging", response_model=AgingReportResponse)
async def ar_aging(
    as_at: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Money owed by customers, aged from the invoice date"""
    return await reports.ar_aging(db, company.id, as_at)


@router.get("/ap-aging", response_model=AgingReportResponse)
async def ap_aging(
    as_at: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Money owed to suppliers, aged from the purchase date"""
    return await reports.ap_aging(db, company.id, as_at)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return await reports.dashboard(db, company.id)
