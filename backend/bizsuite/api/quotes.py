"""Quote API Endpoints

CRUD operations for quotes and conversion into invoices.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from typing import Optional
from bizsuite.api.contacts import ensure_contact
from bizsuite.api.deps import bad_request, get_current_company
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.quote import Quote, QuoteLineItem
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.invoice import InvoiceResponse
from bizsuite.schemas.quote import (
    QUOTE_STATUS_PATTERN,
    QuoteConvertRequest,
    QuoteCreate,
    QuoteResponse,
    QuoteUpdate,
)
from bizsuite.services.documents import (
    calculate_amount_due,
    calculate_totals,
    generate_document_number,
    line_total,
)
from bizsuite.services.invoicing import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


def quote_query():
    return (
        select(Quote)
        .options(selectinload(Quote.line_items))
        .execution_options(populate_existing=True)
    )


async def get_quote_or_404(db: AsyncSession, company_id: int, quote_id: int) -> Quote:
    result = await db.execute(
        quote_query().where(Quote.id == quote_id, Quote.company_id == company_id)
    )
    quote = result.scalar_one_or_none()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def build_quote_lines(line_items) -> list[QuoteLineItem]:
    return [
        QuoteLineItem(
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
            total=line_total(item.quantity, item.unit_price),
            category=item.category,
        )
        for item in line_items
    ]


def apply_totals(quote: Quote):
    totals = calculate_totals(
        (line.total for line in quote.line_items), quote.tax_rate, quote.discount
    )
    if totals["total"] < 0:
        raise HTTPException(status_code=400, detail="Discount cannot exceed the quote amount")
    for field, value in totals.items():
        setattr(quote, field, value)


@router.get("", response_model=PaginatedResponse[QuoteResponse])
async def list_quotes(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=QUOTE_STATUS_PATTERN),
    search: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List quotes with pagination and filters"""
    query = quote_query().where(Quote.company_id == company.id)
    if status:
        query = query.where(Quote.status == status)
    if search:
        query = query.where(
            or_(
                Quote.quote_number.ilike(f"%{search}%"),
                Quote.client_name.ilike(f"%{search}%"),
                Quote.project_name.ilike(f"%{search}%"),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Quote.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[QuoteResponse.model_validate(q) for q in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(
    quote_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return QuoteResponse.model_validate(await get_quote_or_404(db, company.id, quote_id))


@router.post("", response_model=QuoteResponse, status_code=201)
async def create_quote(
    quote_data: QuoteCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create a quote with line items"""
    await ensure_contact(db, company.id, quote_data.contact_id)

    quote = Quote(
        **quote_data.model_dump(exclude={"line_items"}),
        company_id=company.id,
        quote_number=await generate_document_number(
            db, Quote.quote_number, Quote.company_id, company.id, "quote"
        ),
        status="draft",
        line_items=build_quote_lines(quote_data.line_items),
    )
    apply_totals(quote)
    db.add(quote)
    await db.commit()
    logger.info(f"Created quote {quote.quote_number} for company {company.id}")

    return QuoteResponse.model_validate(await get_quote_or_404(db, company.id, quote.id))


@router.put("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    quote_data: QuoteUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Update a quote; converted quotes are read-only"""
    quote = await get_quote_or_404(db, company.id, quote_id)
    if quote.status == "converted":
        raise HTTPException(status_code=400, detail="Converted quotes cannot be edited")
    if quote_data.status == "converted":
        raise HTTPException(status_code=400, detail="Use the convert endpoint to convert a quote")

    update_data = quote_data.model_dump(exclude_unset=True, exclude={"line_items"})
    for field, value in update_data.items():
        setattr(quote, field, value)
    if quote_data.line_items is not None:
        quote.line_items = build_quote_lines(quote_data.line_items)
    apply_totals(quote)

    await db.commit()
    return QuoteResponse.model_validate(await get_quote_or_404(db, company.id, quote.id))


@router.delete("/{quote_id}", status_code=204)
async def delete_quote(
    quote_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    quote = await get_quote_or_404(db, company.id, quote_id)
    await db.delete(quote)
    await db.commit()
    return None


@router.post("/{quote_id}/convert", response_model=InvoiceResponse, status_code=201)
async def convert_quote(
    quote_id: int,
    convert_data: Optional[QuoteConvertRequest] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create an invoice from a quote"""
    quote = await get_quote_or_404(db, company.id, quote_id)
    try:
        invoice = await InvoiceService.convert_quote(
            db, company, quote, convert_data or QuoteConvertRequest()
        )
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    invoice = await InvoiceService.get_invoice(db, company.id, invoice.id)
    response = InvoiceResponse.model_validate(invoice)
    response.amount_due = calculate_amount_due(invoice)
    return response
