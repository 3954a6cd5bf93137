"""Invoice API Endpoints

CRUD operations for invoices, payments and credit notes.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
from datetime import date
from bizsuite.api.contacts import ensure_contact
from bizsuite.api.deps import bad_request, get_current_company
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.invoice import Invoice
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.invoice import (
    INVOICE_STATUS_PATTERN,
    CreditNoteCreate,
    InvoiceCreate,
    InvoicePaymentCreate,
    InvoicePaymentResponse,
    InvoiceResponse,
    InvoiceUpdate,
)
from bizsuite.services.documents import calculate_amount_due
from bizsuite.services.invoicing import InvoiceService, invoice_query

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def invoice_response(invoice: Invoice) -> InvoiceResponse:
    response = InvoiceResponse.model_validate(invoice)
    response.amount_due = calculate_amount_due(invoice)
    return response


async def get_invoice_or_404(db: AsyncSession, company_id: int, invoice_id: int) -> Invoice:
    invoice = await InvoiceService.get_invoice(db, company_id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


async def refresh_statuses(db: AsyncSession, invoices) -> bool:
    """Persist status changes caused by the passage of time, e.g. overdue.

    Returns True when something was committed and the rows need reloading.
    """
    changed = False
    for invoice in invoices:
        before = invoice.status
        if InvoiceService.refresh_status(invoice) != before:
            changed = True
    if changed:
        await db.commit()
    return changed


@router.get("", response_model=PaginatedResponse[InvoiceResponse])
async def list_invoices(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=INVOICE_STATUS_PATTERN),
    invoice_type: Optional[str] = Query(None, pattern="^(invoice|credit-note)$"),
    contact_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List invoices with pagination and filters"""
    query = invoice_query().where(Invoice.company_id == company.id)
    if status:
        query = query.where(Invoice.status == status)
    if invoice_type:
        query = query.where(Invoice.invoice_type == invoice_type)
    if contact_id:
        query = query.where(Invoice.contact_id == contact_id)
    if date_from:
        query = query.where(Invoice.issue_date >= date_from)
    if date_to:
        query = query.where(Invoice.issue_date <= date_to)
    if search:
        query = query.where(
            or_(
                Invoice.invoice_number.ilike(f"%{search}%"),
                Invoice.client_name.ilike(f"%{search}%"),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Invoice.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    invoices = result.scalars().all()
    if await refresh_statuses(db, invoices):
        invoices = (await db.execute(query)).scalars().all()

    return PaginatedResponse.create(
        items=[invoice_response(i) for i in invoices],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Get an invoice with lines and payments; the status is recomputed"""
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    if await refresh_statuses(db, [invoice]):
        invoice = await get_invoice_or_404(db, company.id, invoice_id)
    return invoice_response(invoice)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    invoice_data: InvoiceCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create an invoice with line items"""
    await ensure_contact(db, company.id, invoice_data.contact_id)
    try:
        invoice = await InvoiceService.create_invoice(db, company, invoice_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return invoice_response(await get_invoice_or_404(db, company.id, invoice.id))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    invoice_data: InvoiceUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    try:
        await InvoiceService.update_invoice(db, invoice, invoice_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return invoice_response(await get_invoice_or_404(db, company.id, invoice.id))


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Delete an invoice that has no payments or credit notes"""
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    if invoice.payments or invoice.credit_notes:
        raise HTTPException(
            status_code=400,
            detail="Invoices with payments or credit notes cannot be deleted",
        )
    await db.delete(invoice)
    await db.commit()
    return None


@router.get("/{invoice_id}/payments", response_model=list[InvoicePaymentResponse])
async def get_invoice_payments(
    invoice_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    return [InvoicePaymentResponse.model_validate(p) for p in invoice.payments]


@router.post("/{invoice_id}/payments", response_model=InvoiceResponse, status_code=201)
async def add_payment(
    invoice_id: int,
    payment_data: InvoicePaymentCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Record a payment; returns the invoice with its new status"""
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    try:
        await InvoiceService.add_payment(db, invoice, payment_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return invoice_response(await get_invoice_or_404(db, company.id, invoice.id))


@router.post("/{invoice_id}/credit-notes", response_model=InvoiceResponse, status_code=201)
async def create_credit_note(
    invoice_id: int,
    credit_data: CreditNoteCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Issue a credit note against an invoice; returns the credit note"""
    invoice = await get_invoice_or_404(db, company.id, invoice_id)
    try:
        credit_note = await InvoiceService.create_credit_note(db, company, invoice, credit_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return invoice_response(await get_invoice_or_404(db, company.id, credit_note.id))
