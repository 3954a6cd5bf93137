"""Recurring Invoice Services

Generates invoices from due recurring templates and advances their
schedule. Each run issues at most one invoice per template.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.invoice import Invoice, InvoiceLineItem, RecurringInvoice
from bizsuite.services.documents import next_generation_date
from bizsuite.services.invoicing import InvoiceService

logger = logging.getLogger(__name__)


class RecurringInvoiceService:
    """Service for recurring invoice generation"""

    @staticmethod
    async def due_templates(
        db: AsyncSession,
        company_id: int,
        today: date,
    ) -> list[RecurringInvoice]:
        result = await db.execute(
            select(RecurringInvoice)
            .options(selectinload(RecurringInvoice.line_items))
            .where(
                RecurringInvoice.company_id == company_id,
                RecurringInvoice.is_active.is_(True),
                RecurringInvoice.next_invoice_date <= today,
            )
            .order_by(RecurringInvoice.next_invoice_date, RecurringInvoice.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def generate_invoice(
        db: AsyncSession,
        recurring: RecurringInvoice,
        today: date,
    ) -> Optional[Invoice]:
        """Issue the next invoice for one template.

        Templates whose next date is past their end date are deactivated and
        produce nothing.
        """
        if recurring.end_date and recurring.next_invoice_date > recurring.end_date:
            recurring.is_active = False
            logger.info(f"Recurring invoice {recurring.id} ended on {recurring.end_date}")
            return None

        next_date = next_generation_date(recurring.next_invoice_date, recurring.frequency)

        invoice = Invoice(
            company_id=recurring.company_id,
            invoice_number=await InvoiceService.next_number(db, recurring.company_id),
            invoice_type="invoice",
            recurring_invoice_id=recurring.id,
            contact_id=recurring.contact_id,
            client_name=recurring.client_name,
            client_email=recurring.client_email,
            issue_date=today,
            due_date=today + timedelta(days=recurring.payment_terms_days or 0),
            tax_rate=recurring.tax_rate,
            discount=recurring.discount,
            subtotal=recurring.subtotal,
            tax_amount=recurring.tax_amount,
            total=recurring.total,
            status="unpaid",
            payment_terms=f"Net {recurring.payment_terms_days}",
            notes=recurring.notes,
            line_items=[
                InvoiceLineItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    total=item.total,
                )
                for item in recurring.line_items
            ],
        )
        db.add(invoice)
        # numbering reads existing invoices, so the new row must be visible
        await db.flush()

        recurring.last_generated_date = today
        recurring.next_invoice_date = next_date
        if recurring.end_date and next_date > recurring.end_date:
            recurring.is_active = False
        return invoice

    @staticmethod
    async def run_due(
        db: AsyncSession,
        company_id: int,
        today: Optional[date] = None,
    ) -> dict:
        """Generate invoices for every due template of a company"""
        today = today or date.today()
        templates = await RecurringInvoiceService.due_templates(db, company_id, today)
        if not templates:
            logger.info(f"No recurring invoices due for company {company_id}")
            return {"message": "No invoices due", "count": 0, "invoice_numbers": [], "errors": []}

        logger.info(f"Found {len(templates)} recurring invoices to process")
        numbers: list[str] = []
        errors: list[str] = []
        for recurring in templates:
            recurring_id = recurring.id
            try:
                # a failed template rolls back only its own savepoint
                async with db.begin_nested():
                    invoice = await RecurringInvoiceService.generate_invoice(
                        db, recurring, today
                    )
            except (BusinessRuleError, SQLAlchemyError) as e:
                logger.error(f"Error processing recurring invoice {recurring_id}: {e}")
                errors.append(f"Error processing recurring {recurring_id}: {e}")
                continue
            if invoice is not None:
                numbers.append(invoice.invoice_number)
                logger.info(
                    f"Generated invoice {invoice.invoice_number} from recurring {recurring_id}"
                )

        await db.commit()
        return {
            "message": f"Successfully generated {len(numbers)} invoices",
            "count": len(numbers),
            "invoice_numbers": numbers,
            "errors": errors,
        }
