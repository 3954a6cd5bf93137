"""Recurring Invoice API Endpoints

Recurring invoice templates and the generation run.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from typing import Optional
from datetime import date
from bizsuite.api.contacts import ensure_contact
from bizsuite.api.deps import get_current_company
from bizsuite.core.database import get_db
from bizsuite.models.company import Company
from bizsuite.models.invoice import RecurringInvoice, RecurringInvoiceLineItem
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.invoice import (
    RecurringInvoiceCreate,
    RecurringInvoiceResponse,
    RecurringInvoiceUpdate,
    RecurringRunResponse,
)
from bizsuite.services.documents import calculate_totals, line_total
from bizsuite.services.recurring import RecurringInvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recurring-invoices", tags=["recurring-invoices"])


def recurring_query():
    return (
        select(RecurringInvoice)
        .options(selectinload(RecurringInvoice.line_items))
        .execution_options(populate_existing=True)
    )


async def get_recurring_or_404(
    db: AsyncSession, company_id: int, recurring_id: int
) -> RecurringInvoice:
    result = await db.execute(
        recurring_query().where(
            RecurringInvoice.id == recurring_id,
            RecurringInvoice.company_id == company_id,
        )
    )
    recurring = result.scalar_one_or_none()
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring invoice not found")
    return recurring


@router.get("", response_model=PaginatedResponse[RecurringInvoiceResponse])
async def list_recurring_invoices(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    query = recurring_query().where(RecurringInvoice.company_id == company.id)
    if is_active is not None:
        query = query.where(RecurringInvoice.is_active.is_(is_active))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = (
        query.order_by(RecurringInvoice.next_invoice_date, RecurringInvoice.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[RecurringInvoiceResponse.model_validate(r) for r in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/run", response_model=RecurringRunResponse)
async def run_recurring_invoices(
    run_date: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Generate invoices for every due, active template of the company"""
    result = await RecurringInvoiceService.run_due(db, company.id, run_date)
    return RecurringRunResponse(**result)


@router.get("/{recurring_id}", response_model=RecurringInvoiceResponse)
async def get_recurring_invoice(
    recurring_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return RecurringInvoiceResponse.model_validate(
        await get_recurring_or_404(db, company.id, recurring_id)
    )


@router.post("", response_model=RecurringInvoiceResponse, status_code=201)
async def create_recurring_invoice(
    recurring_data: RecurringInvoiceCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create a template; the first invoice is due on the start date"""
    await ensure_contact(db, company.id, recurring_data.contact_id)
    if recurring_data.end_date and recurring_data.end_date < recurring_data.start_date:
        raise HTTPException(status_code=400, detail="End date cannot be before the start date")

    lines = [
        RecurringInvoiceLineItem(
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
            total=line_total(item.quantity, item.unit_price),
        )
        for item in recurring_data.line_items
    ]
    totals = calculate_totals(
        (line.total for line in lines), recurring_data.tax_rate, recurring_data.discount
    )
    if totals["total"] < 0:
        raise HTTPException(status_code=400, detail="Discount cannot exceed the invoice amount")

    recurring = RecurringInvoice(
        **recurring_data.model_dump(exclude={"line_items"}),
        company_id=company.id,
        next_invoice_date=recurring_data.start_date,
        is_active=True,
        line_items=lines,
        **totals,
    )
    db.add(recurring)
    await db.commit()
    logger.info(f"Created {recurring.frequency} recurring invoice {recurring.id}")

    return RecurringInvoiceResponse.model_validate(
        await get_recurring_or_404(db, company.id, recurring.id)
    )


@router.put("/{recurring_id}", response_model=RecurringInvoiceResponse)
async def update_recurring_invoice(
    recurring_id: int,
    recurring_data: RecurringInvoiceUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    recurring = await get_recurring_or_404(db, company.id, recurring_id)

    update_data = recurring_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(recurring, field, value)
    if recurring.end_date and recurring.end_date < recurring.start_date:
        raise HTTPException(status_code=400, detail="End date cannot be before the start date")

    await db.commit()
    return RecurringInvoiceResponse.model_validate(
        await get_recurring_or_404(db, company.id, recurring.id)
    )


@router.delete("/{recurring_id}", status_code=204)
async def delete_recurring_invoice(
    recurring_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Delete a template; invoices already generated are kept"""
    recurring = await get_recurring_or_404(db, company.id, recurring_id)
    await db.delete(recurring)
    await db.commit()
    return None
