"""Invoicing Services

Invoice creation, payments, credit notes and quote conversion.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizsuite.core.config import settings
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.inventory import InventoryItem
from bizsuite.models.invoice import Invoice, InvoiceLineItem, InvoicePayment
from bizsuite.models.quote import Quote
from bizsuite.services.documents import (
    calculate_amount_due,
    calculate_invoice_status,
    calculate_totals,
    generate_document_number,
    line_total,
)

logger = logging.getLogger(__name__)


def invoice_query():
    """Invoice select with lines, payments and credit notes eagerly loaded"""
    return (
        select(Invoice)
        .options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.payments),
            selectinload(Invoice.credit_notes),
        )
        .execution_options(populate_existing=True)
    )


def build_invoice_lines(line_items) -> list[InvoiceLineItem]:
    return [
        InvoiceLineItem(
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
            total=line_total(item.quantity, item.unit_price),
            inventory_item_id=getattr(item, "inventory_item_id", None),
        )
        for item in line_items
    ]


class InvoiceService:
    """Service for invoice business operations"""

    @staticmethod
    async def get_invoice(
        db: AsyncSession,
        company_id: int,
        invoice_id: int,
    ) -> Optional[Invoice]:
        result = await db.execute(
            invoice_query().where(
                Invoice.id == invoice_id,
                Invoice.company_id == company_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def next_number(db: AsyncSession, company_id: int, kind: str = "invoice") -> str:
        return await generate_document_number(
            db, Invoice.invoice_number, Invoice.company_id, company_id, kind
        )

    @staticmethod
    async def deduct_stock(db: AsyncSession, company_id: int, lines: list[InvoiceLineItem]):
        """Reduce on-hand stock for lines linked to inventory items"""
        for line in lines:
            if not line.inventory_item_id:
                continue
            result = await db.execute(
                select(InventoryItem).where(
                    InventoryItem.id == line.inventory_item_id,
                    InventoryItem.company_id == company_id,
                )
            )
            item = result.scalar_one_or_none()
            if not item:
                raise BusinessRuleError(f"Inventory item {line.inventory_item_id} not found")
            item.quantity_on_hand = (item.quantity_on_hand or 0.0) - line.quantity
            if item.quantity_on_hand < 0:
                logger.warning(f"Stock for {item.sku} is negative ({item.quantity_on_hand})")

    @staticmethod
    async def create_invoice(
        db: AsyncSession,
        company: Company,
        data,
        quote_id: Optional[int] = None,
    ) -> Invoice:
        """Create an invoice with computed totals and number"""
        issue_date = data.issue_date or date.today()
        due_date = data.due_date or issue_date + timedelta(
            days=settings.DEFAULT_PAYMENT_TERMS_DAYS
        )
        if due_date < issue_date:
            raise BusinessRuleError("Due date cannot be before the issue date")

        lines = build_invoice_lines(data.line_items)
        totals = calculate_totals((line.total for line in lines), data.tax_rate, data.discount)
        if totals["total"] < 0:
            raise BusinessRuleError("Discount cannot exceed the invoice amount")

        invoice = Invoice(
            company_id=company.id,
            invoice_number=await InvoiceService.next_number(db, company.id),
            invoice_type="invoice",
            quote_id=quote_id,
            contact_id=data.contact_id,
            client_name=data.client_name,
            client_email=data.client_email,
            client_phone=data.client_phone,
            project_name=data.project_name,
            project_address=data.project_address,
            issue_date=issue_date,
            due_date=due_date,
            tax_rate=data.tax_rate,
            discount=data.discount,
            payment_terms=data.payment_terms,
            notes=data.notes,
            status=getattr(data, "status", "unpaid"),
            line_items=lines,
            **totals,
        )
        if invoice.status != "draft":
            await InvoiceService.deduct_stock(db, company.id, lines)

        db.add(invoice)
        await db.flush()
        logger.info(f"Created invoice {invoice.invoice_number} for company {company.id}")
        return invoice

    @staticmethod
    async def update_invoice(db: AsyncSession, invoice: Invoice, data) -> Invoice:
        """Apply edits; lines can only be replaced while the invoice is a draft"""
        if invoice.invoice_type == "credit-note":
            raise BusinessRuleError("Credit notes cannot be edited")

        update_data = data.model_dump(exclude_unset=True, exclude={"line_items", "status"})
        if data.line_items is not None:
            if invoice.status != "draft":
                raise BusinessRuleError("Only draft invoices can have their lines changed")
            invoice.line_items = build_invoice_lines(data.line_items)

        for field, value in update_data.items():
            setattr(invoice, field, value)

        if invoice.due_date < invoice.issue_date:
            raise BusinessRuleError("Due date cannot be before the issue date")

        totals = calculate_totals(
            (line.total for line in invoice.line_items), invoice.tax_rate, invoice.discount
        )
        if totals["total"] < 0:
            raise BusinessRuleError("Discount cannot exceed the invoice amount")
        if invoice.payments and totals["total"] < sum(p.amount for p in invoice.payments):
            raise BusinessRuleError("Invoice total cannot drop below the amount already paid")
        for field, value in totals.items():
            setattr(invoice, field, value)

        if data.status == "unpaid" and invoice.status == "draft":
            invoice.status = "unpaid"
            await InvoiceService.deduct_stock(db, invoice.company_id, invoice.line_items)
            logger.info(f"Issued draft invoice {invoice.invoice_number}")
        elif data.status == "draft" and invoice.status != "draft":
            raise BusinessRuleError("An issued invoice cannot return to draft")

        InvoiceService.refresh_status(invoice)
        await db.flush()
        return invoice

    @staticmethod
    def refresh_status(invoice: Invoice, today: Optional[date] = None) -> str:
        invoice.status = calculate_invoice_status(invoice, today)
        return invoice.status

    @staticmethod
    async def add_payment(db: AsyncSession, invoice: Invoice, data) -> InvoicePayment:
        """Record a payment and recompute the invoice status"""
        if invoice.invoice_type == "credit-note":
            raise BusinessRuleError("Payments cannot be recorded against a credit note")
        if invoice.status == "draft":
            raise BusinessRuleError("Issue the invoice before recording payments")

        amount_due = calculate_amount_due(invoice)
        if data.amount - amount_due > 0.01:
            raise BusinessRuleError(
                f"Payment of {data.amount:.2f} exceeds amount due of {amount_due:.2f}"
            )

        payment = InvoicePayment(
            amount=data.amount,
            payment_date=data.payment_date or date.today(),
            method=data.method,
            reference=data.reference,
        )
        invoice.payments.append(payment)
        InvoiceService.refresh_status(invoice)
        await db.flush()
        logger.info(
            f"Recorded payment {data.amount:.2f} on {invoice.invoice_number}, "
            f"status now {invoice.status}"
        )
        return payment

    @staticmethod
    async def create_credit_note(
        db: AsyncSession,
        company: Company,
        invoice: Invoice,
        data,
    ) -> Invoice:
        """Credit an invoice in full or by the given lines.

        The credit note carries negative totals and is linked to the invoice,
        whose status is then recomputed.
        """
        if invoice.invoice_type == "credit-note":
            raise BusinessRuleError("A credit note cannot be credited")
        if invoice.status == "draft":
            raise BusinessRuleError("Draft invoices cannot be credited")

        if data.line_items:
            lines = build_invoice_lines(data.line_items)
            totals = calculate_totals((line.total for line in lines), invoice.tax_rate)
        else:
            lines = build_invoice_lines(invoice.line_items)
            totals = {
                "subtotal": invoice.subtotal,
                "tax_amount": invoice.tax_amount,
                "total": invoice.total,
            }

        if totals["total"] - calculate_amount_due(invoice) > 0.01:
            raise BusinessRuleError("Credit exceeds the amount due on the invoice")

        issue_date = data.issue_date or date.today()
        credit_note = Invoice(
            company_id=company.id,
            invoice_number=await InvoiceService.next_number(db, company.id, "credit-note"),
            invoice_type="credit-note",
            contact_id=invoice.contact_id,
            client_name=invoice.client_name,
            client_email=invoice.client_email,
            client_phone=invoice.client_phone,
            project_name=invoice.project_name,
            project_address=invoice.project_address,
            issue_date=issue_date,
            due_date=issue_date,
            tax_rate=invoice.tax_rate,
            discount=0.0,
            subtotal=-totals["subtotal"],
            tax_amount=-totals["tax_amount"],
            total=-totals["total"],
            status="paid",
            payment_terms=invoice.payment_terms,
            notes=data.reason or f"Credit note for {invoice.invoice_number}",
            line_items=lines,
        )
        invoice.credit_notes.append(credit_note)
        InvoiceService.refresh_status(invoice)
        await db.flush()
        logger.info(f"Issued {credit_note.invoice_number} against {invoice.invoice_number}")
        return credit_note

    @staticmethod
    async def convert_quote(db: AsyncSession, company: Company, quote: Quote, data) -> Invoice:
        """Create an invoice carrying over a quote's client and lines"""
        if quote.status == "converted":
            raise BusinessRuleError("This quote has already been converted")
        if quote.status == "declined":
            raise BusinessRuleError("A declined quote cannot be converted")

        invoice = Invoice(
            company_id=company.id,
            invoice_number=await InvoiceService.next_number(db, company.id),
            invoice_type="invoice",
            quote_id=quote.id,
            contact_id=quote.contact_id,
            client_name=quote.client_name,
            client_email=quote.client_email,
            client_phone=quote.client_phone,
            project_name=quote.project_name,
            project_address=quote.project_address,
            issue_date=data.issue_date or date.today(),
            due_date=data.due_date
            or (data.issue_date or date.today())
            + timedelta(days=settings.DEFAULT_PAYMENT_TERMS_DAYS),
            tax_rate=quote.tax_rate,
            discount=quote.discount,
            subtotal=quote.subtotal,
            tax_amount=quote.tax_amount,
            total=quote.total,
            status="unpaid",
            notes=f"Converted from quote {quote.quote_number}",
            line_items=[
                InvoiceLineItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    total=item.total,
                )
                for item in quote.line_items
            ],
        )
        db.add(invoice)
        await db.flush()

        quote.status = "converted"
        quote.converted_invoice_id = invoice.id
        logger.info(f"Converted quote {quote.quote_number} to invoice {invoice.invoice_number}")
        return invoice
