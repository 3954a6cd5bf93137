"""Reporting Services

VAT report, debtor and creditor aging, and the company dashboard summary.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizsuite.models.crm import Deal
from bizsuite.models.inventory import InventoryItem
from bizsuite.models.invoice import Invoice
from bizsuite.models.purchasing import Purchase
from bizsuite.services.documents import calculate_amount_due, purchase_payment_status
from bizsuite.services.invoicing import invoice_query
from bizsuite.services.purchasing import purchase_query

AGING_BUCKETS = (
    (30, "current"),
    (60, "days_30"),
    (90, "days_60"),
    (120, "days_90"),
)
AGING_OVERFLOW_BUCKET = "days_120_plus"


def _section(transactions: list[dict]) -> dict:
    return {
        "transactions": transactions,
        "total_taxable": round(sum(t["taxable_amount"] for t in transactions), 2),
        "total_vat": round(sum(t["vat_amount"] for t in transactions), 2),
    }


async def vat_report(
    db: AsyncSession,
    company_id: int,
    start_date: date,
    end_date: date,
) -> dict:
    """Output VAT on issued invoices against input VAT on purchases.

    Credit notes, drafts and cancelled purchases are left out.
    """
    invoices = await db.execute(
        select(Invoice)
        .where(
            Invoice.company_id == company_id,
            Invoice.invoice_type != "credit-note",
            Invoice.status != "draft",
            Invoice.issue_date >= start_date,
            Invoice.issue_date <= end_date,
        )
        .order_by(Invoice.issue_date, Invoice.id)
    )
    output = [
        {
            "date": inv.issue_date,
            "reference": inv.invoice_number,
            "description": inv.client_name,
            "taxable_amount": round((inv.subtotal or 0.0) - (inv.discount or 0.0), 2),
            "vat_amount": round(inv.tax_amount or 0.0, 2),
        }
        for inv in invoices.scalars().all()
    ]

    purchases = await db.execute(
        select(Purchase)
        .where(
            Purchase.company_id == company_id,
            Purchase.status != "cancelled",
            Purchase.purchase_date >= start_date,
            Purchase.purchase_date <= end_date,
        )
        .order_by(Purchase.purchase_date, Purchase.id)
    )
    inputs = [
        {
            "date": pur.purchase_date,
            "reference": pur.supplier_invoice_number or pur.purchase_number,
            "description": pur.vendor,
            "taxable_amount": round((pur.subtotal or 0.0) - (pur.discount or 0.0), 2),
            "vat_amount": round(pur.tax_amount or 0.0, 2),
        }
        for pur in purchases.scalars().all()
    ]

    output_vat = _section(output)
    input_vat = _section(inputs)
    return {
        "start_date": start_date,
        "end_date": end_date,
        "output_vat": output_vat,
        "input_vat": input_vat,
        "net_vat": round(output_vat["total_vat"] - input_vat["total_vat"], 2),
    }


def aging_bucket(days_old: int) -> str:
    for limit, bucket in AGING_BUCKETS:
        if days_old <= limit:
            return bucket
    return AGING_OVERFLOW_BUCKET


def _empty_aging_row() -> dict:
    row = {bucket: 0.0 for _, bucket in AGING_BUCKETS}
    row[AGING_OVERFLOW_BUCKET] = 0.0
    row["total"] = 0.0
    return row


def _aging_report(entries: list[tuple[str, date, float]], as_at: date) -> dict:
    """Bucket ``(contact, document date, outstanding)`` entries by age in days."""
    rows: dict[str, dict] = {}
    for contact_name, document_date, outstanding in entries:
        row = rows.setdefault(contact_name, _empty_aging_row())
        row[aging_bucket((as_at - document_date).days)] += outstanding
        row["total"] += outstanding

    totals = _empty_aging_row()
    report_rows = []
    for contact_name in sorted(rows, key=str.lower):
        row = {key: round(value, 2) for key, value in rows[contact_name].items()}
        for key, value in row.items():
            totals[key] += value
        report_rows.append({"contact_name": contact_name, **row})

    return {
        "as_at": as_at,
        "rows": report_rows,
        "totals": {key: round(value, 2) for key, value in totals.items()},
    }


async def ar_aging(db: AsyncSession, company_id: int, as_at: Optional[date] = None) -> dict:
    """Outstanding customer invoices by client, aged from the issue date."""
    as_at = as_at or date.today()
    invoices = (
        await db.execute(
            invoice_query().where(
                Invoice.company_id == company_id,
                Invoice.invoice_type == "invoice",
                Invoice.status != "draft",
                Invoice.issue_date <= as_at,
            )
        )
    ).scalars().all()

    entries = []
    for inv in invoices:
        outstanding = calculate_amount_due(inv)
        if outstanding > 0:
            entries.append((inv.client_name, inv.issue_date, outstanding))
    return _aging_report(entries, as_at)


async def ap_aging(db: AsyncSession, company_id: int, as_at: Optional[date] = None) -> dict:
    """Unpaid supplier purchases by vendor, aged from the purchase date."""
    as_at = as_at or date.today()
    purchases = (
        await db.execute(
            purchase_query().where(
                Purchase.company_id == company_id,
                Purchase.status != "cancelled",
                Purchase.purchase_date <= as_at,
            )
        )
    ).scalars().all()

    entries = []
    for pur in purchases:
        info = purchase_payment_status(pur)
        if not info["is_paid"]:
            entries.append((pur.vendor, pur.purchase_date, info["remaining_balance"]))
    return _aging_report(entries, as_at)


async def dashboard(db: AsyncSession, company_id: int, today: Optional[date] = None) -> dict:
    invoices = (
        await db.execute(
            invoice_query().where(
                Invoice.company_id == company_id,
                Invoice.invoice_type == "invoice",
                Invoice.status != "draft",
            )
        )
    ).scalars().all()

    today = today or date.today()
    outstanding = [calculate_amount_due(inv) for inv in invoices]
    overdue = [
        inv
        for inv, due in zip(invoices, outstanding)
        if due > 0 and inv.due_date and inv.due_date < today
    ]

    purchases = (
        await db.execute(
            select(Purchase).where(
                Purchase.company_id == company_id, Purchase.status != "cancelled"
            )
        )
    ).scalars().all()

    deals = (
        await db.execute(
            select(Deal).where(Deal.company_id == company_id, Deal.stage != "closed")
        )
    ).scalars().all()

    low_stock = (
        await db.execute(
            select(InventoryItem).where(
                InventoryItem.company_id == company_id,
                InventoryItem.quantity_on_hand <= InventoryItem.reorder_level,
            )
        )
    ).scalars().all()

    return {
        "invoice_count": len(invoices),
        "total_invoiced": round(sum(inv.total or 0.0 for inv in invoices), 2),
        "total_outstanding": round(sum(outstanding), 2),
        "overdue_count": len(overdue),
        "purchase_count": len(purchases),
        "total_purchases": round(sum(p.total or 0.0 for p in purchases), 2),
        "open_deals": len(deals),
        "pipeline_value": round(sum(d.value or 0.0 for d in deals), 2),
        "weighted_pipeline_value": round(
            sum((d.value or 0.0) * (d.probability or 0) / 100 for d in deals), 2
        ),
        "low_stock_items": len(low_stock),
    }
