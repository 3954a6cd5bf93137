"""Document Calculations

Totals, numbering and status rules shared by quotes, invoices, purchase
orders and purchases.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizsuite.core.exceptions import BusinessRuleError

FREQUENCIES = ("weekly", "monthly", "quarterly", "yearly")

# prefix, zero padding
NUMBER_FORMATS = {
    "quote": ("QTE", 4),
    "invoice": ("INV", 4),
    "credit-note": ("CN", 4),
    "purchase-order": ("PO", 5),
    "purchase": ("PUR", 5),
}


def line_total(quantity: float, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


def calculate_totals(line_totals: Iterable[float], tax_rate: float, discount: float = 0.0) -> dict:
    """Subtotal, tax and total; tax is charged on the subtotal before discount."""
    subtotal = round(sum(line_totals), 2)
    tax_amount = round(subtotal * tax_rate, 2)
    total = round(subtotal + tax_amount - discount, 2)
    return {"subtotal": subtotal, "tax_amount": tax_amount, "total": total}


def format_document_number(kind: str, sequence: int) -> str:
    prefix, width = NUMBER_FORMATS[kind]
    return f"{prefix}-{sequence:0{width}d}"


def next_sequence(existing_numbers: Iterable[Optional[str]], kind: str) -> int:
    prefix, _ = NUMBER_FORMATS[kind]
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for number in existing_numbers:
        match = pattern.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


async def generate_document_number(
    db: AsyncSession,
    column,
    company_column,
    company_id: int,
    kind: str,
) -> str:
    """Next number for ``kind`` within a company, e.g. ``INV-0007``."""
    result = await db.execute(select(column).where(company_column == company_id))
    numbers = [row[0] for row in result.all()]
    return format_document_number(kind, next_sequence(numbers, kind))


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_generation_date(current: date, frequency: str) -> date:
    if frequency == "weekly":
        return current + timedelta(days=7)
    if frequency == "monthly":
        return add_months(current, 1)
    if frequency == "quarterly":
        return add_months(current, 3)
    if frequency == "yearly":
        return add_months(current, 12)
    raise BusinessRuleError(f"Unknown frequency: {frequency}")


# ---------------------------------------------------------------------------
# Invoice status
# ---------------------------------------------------------------------------


def _outstanding(invoice) -> float:
    paid = sum(p.amount for p in invoice.payments or [])
    credited = sum(
        abs(cn.total)
        for cn in invoice.credit_notes or []
        if cn.invoice_type == "credit-note"
    )
    return invoice.total - paid - credited


def calculate_amount_due(invoice) -> float:
    """Total less payments and credit notes, never below zero."""
    if invoice.invoice_type == "credit-note":
        return 0.0
    return round(max(0.0, _outstanding(invoice)), 2)


def calculate_invoice_status(invoice, today: Optional[date] = None) -> str:
    """Derive the status from payments, credit notes and the due date.

    Drafts keep their status until issued.
    """
    if invoice.invoice_type == "credit-note":
        return "paid"
    if invoice.status == "draft":
        return "draft"

    amount_due = _outstanding(invoice)
    if amount_due <= 0:
        return "paid"

    today = today or date.today()
    if invoice.due_date and invoice.due_date < today:
        return "overdue"
    if amount_due < invoice.total:
        return "partly-paid"
    return "unpaid"


# ---------------------------------------------------------------------------
# Purchase status
# ---------------------------------------------------------------------------


def purchase_payment_status(purchase) -> dict:
    total_paid = round(sum(p.amount for p in purchase.payments or []), 2)
    remaining = purchase.total - total_paid
    is_paid = remaining <= 0.01
    progress = (total_paid / purchase.total) * 100 if purchase.total else 100.0
    return {
        "is_paid": is_paid,
        "is_partially_paid": total_paid > 0 and not is_paid,
        "remaining_balance": round(max(0.0, remaining), 2),
        "total_paid": total_paid,
        "payment_progress": round(min(100.0, progress), 2),
    }


def purchase_status_badge(purchase) -> str:
    info = purchase_payment_status(purchase)
    if info["is_paid"] and purchase.status == "received":
        return "PAID & RECEIVED"
    if info["is_paid"]:
        return "PAID"
    if info["is_partially_paid"]:
        return "PARTIALLY PAID"
    if purchase.status == "cancelled":
        return "CANCELLED"
    return purchase.status.replace("-", " ").upper()


def receipt_status(line_items) -> str:
    """Purchase status implied by received quantities."""
    lines = list(line_items)
    if lines and all(line.received_quantity >= line.quantity for line in lines):
        return "received"
    if any(line.received_quantity > 0 for line in lines):
        return "partly-received"
    return "pending"
