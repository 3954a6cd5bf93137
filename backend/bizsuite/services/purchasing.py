"""Purchasing Services

Purchase order conversion, goods receipt and supplier payments.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.inventory import InventoryItem
from bizsuite.models.purchasing import (
    Purchase,
    PurchaseLineItem,
    PurchaseOrder,
    PurchasePayment,
)
from bizsuite.services.documents import (
    calculate_totals,
    generate_document_number,
    line_total,
    purchase_payment_status,
    receipt_status,
)

logger = logging.getLogger(__name__)


def purchase_order_query():
    return (
        select(PurchaseOrder)
        .options(selectinload(PurchaseOrder.line_items))
        .execution_options(populate_existing=True)
    )


def purchase_query():
    return (
        select(Purchase)
        .options(selectinload(Purchase.line_items), selectinload(Purchase.payments))
        .execution_options(populate_existing=True)
    )


class PurchasingService:
    """Service for purchasing business operations"""

    @staticmethod
    async def next_purchase_number(db: AsyncSession, company_id: int) -> str:
        return await generate_document_number(
            db, Purchase.purchase_number, Purchase.company_id, company_id, "purchase"
        )

    @staticmethod
    async def next_po_number(db: AsyncSession, company_id: int) -> str:
        return await generate_document_number(
            db, PurchaseOrder.po_number, PurchaseOrder.company_id, company_id, "purchase-order"
        )

    @staticmethod
    async def check_duplicate_supplier_invoice(
        db: AsyncSession,
        company_id: int,
        vendor: str,
        supplier_invoice_number: Optional[str],
        exclude_id: Optional[int] = None,
    ):
        """Reject a supplier invoice number already captured for the vendor"""
        if not supplier_invoice_number:
            return
        query = select(Purchase.id).where(
            Purchase.company_id == company_id,
            Purchase.vendor == vendor,
            Purchase.supplier_invoice_number == supplier_invoice_number,
        )
        if exclude_id:
            query = query.where(Purchase.id != exclude_id)
        result = await db.execute(query)
        if result.first():
            raise BusinessRuleError(
                f"Supplier invoice {supplier_invoice_number} from {vendor} is already captured"
            )

    @staticmethod
    async def create_purchase(db: AsyncSession, company_id: int, data) -> Purchase:
        await PurchasingService.check_duplicate_supplier_invoice(
            db, company_id, data.vendor, data.supplier_invoice_number
        )

        lines = [
            PurchaseLineItem(
                description=item.description,
                quantity=item.quantity,
                received_quantity=0.0,
                unit_cost=item.unit_cost,
                total=line_total(item.quantity, item.unit_cost),
                category=item.category,
                inventory_item_id=item.inventory_item_id,
            )
            for item in data.line_items
        ]
        totals = calculate_totals((line.total for line in lines), data.tax_rate, data.discount)
        if totals["total"] < 0:
            raise BusinessRuleError("Discount cannot exceed the purchase amount")

        purchase = Purchase(
            company_id=company_id,
            purchase_number=await PurchasingService.next_purchase_number(db, company_id),
            vendor=data.vendor,
            vendor_contact=data.vendor_contact,
            purchase_date=data.purchase_date or date.today(),
            due_date=data.due_date,
            tax_rate=data.tax_rate,
            discount=data.discount,
            status="pending",
            inventory_method=data.inventory_method,
            supplier_invoice_number=data.supplier_invoice_number,
            notes=data.notes,
            line_items=lines,
            **totals,
        )
        db.add(purchase)
        await db.flush()
        logger.info(f"Created purchase {purchase.purchase_number} for company {company_id}")
        return purchase

    @staticmethod
    async def convert_order(
        db: AsyncSession,
        order: PurchaseOrder,
        today: Optional[date] = None,
    ) -> Purchase:
        """Turn a purchase order into a pending purchase and mark it converted"""
        if order.status == "converted":
            raise BusinessRuleError("This PO has already been converted")
        if order.status == "rejected":
            raise BusinessRuleError("A rejected PO cannot be converted")

        purchase = Purchase(
            company_id=order.company_id,
            purchase_number=await PurchasingService.next_purchase_number(db, order.company_id),
            vendor=order.vendor,
            vendor_contact=order.vendor_contact,
            purchase_date=today or date.today(),
            due_date=order.expected_delivery,
            subtotal=order.subtotal,
            tax_rate=order.tax_rate,
            tax_amount=order.tax_amount,
            discount=order.discount,
            total=order.total,
            status="pending",
            inventory_method="perpetual",
            notes=f"Converted from PO {order.po_number}",
            line_items=[
                PurchaseLineItem(
                    description=item.description,
                    quantity=item.quantity,
                    received_quantity=0.0,
                    unit_cost=item.unit_cost,
                    total=item.total,
                    inventory_item_id=item.inventory_item_id,
                )
                for item in order.line_items
            ],
        )
        db.add(purchase)
        await db.flush()

        order.status = "converted"
        order.converted_to_purchase_id = purchase.id
        logger.info(f"Converted PO {order.po_number} to purchase {purchase.purchase_number}")
        return purchase

    @staticmethod
    async def receive(
        db: AsyncSession,
        purchase: Purchase,
        lines: list,
        received_date: Optional[date] = None,
    ) -> Purchase:
        """Record received quantities and update stock for linked items"""
        if purchase.status == "cancelled":
            raise BusinessRuleError("Cannot receive goods on a cancelled purchase")

        by_id = {line.id: line for line in purchase.line_items}
        for received in lines:
            line = by_id.get(received.line_id)
            if line is None:
                raise BusinessRuleError(f"Line {received.line_id} is not on this purchase")
            outstanding = line.quantity - line.received_quantity
            if received.quantity - outstanding > 1e-9:
                raise BusinessRuleError(
                    f"Cannot receive {received.quantity} of '{line.description}', "
                    f"only {outstanding} outstanding"
                )
            line.received_quantity += received.quantity

            if line.inventory_item_id and purchase.inventory_method == "perpetual":
                result = await db.execute(
                    select(InventoryItem).where(
                        InventoryItem.id == line.inventory_item_id,
                        InventoryItem.company_id == purchase.company_id,
                    )
                )
                item = result.scalar_one_or_none()
                if item:
                    item.quantity_on_hand = (item.quantity_on_hand or 0.0) + received.quantity
                    item.cost_price = line.unit_cost

        purchase.status = receipt_status(purchase.line_items)
        if purchase.status == "received":
            purchase.received_date = received_date or date.today()
        await db.flush()
        logger.info(f"Purchase {purchase.purchase_number} is now {purchase.status}")
        return purchase

    @staticmethod
    async def add_payment(db: AsyncSession, purchase: Purchase, data) -> PurchasePayment:
        if purchase.status == "cancelled":
            raise BusinessRuleError("Cannot pay a cancelled purchase")
        remaining = purchase_payment_status(purchase)["remaining_balance"]
        if data.amount - remaining > 0.01:
            raise BusinessRuleError(
                f"Payment of {data.amount:.2f} exceeds remaining balance of {remaining:.2f}"
            )

        payment = PurchasePayment(
            amount=data.amount,
            payment_date=data.payment_date or date.today(),
            method=data.method,
            reference=data.reference,
        )
        purchase.payments.append(payment)
        await db.flush()
        logger.info(f"Recorded payment {data.amount:.2f} on {purchase.purchase_number}")
        return payment
