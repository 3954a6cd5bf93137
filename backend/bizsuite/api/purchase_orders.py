"""Purchase Order API Endpoints

CRUD operations for purchase orders and conversion into purchases.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
from datetime import date
from bizsuite.api.deps import bad_request, get_current_company
from bizsuite.api.purchases import get_purchase_or_404
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.purchasing import PurchaseOrder, PurchaseOrderLineItem
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.purchasing import (
    PurchaseOrderCreate,
    PurchaseOrderResponse,
    PurchaseOrderUpdate,
    PurchaseResponse,
)
from bizsuite.services.documents import calculate_totals, line_total
from bizsuite.services.purchasing import PurchasingService, purchase_order_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


async def get_order_or_404(db: AsyncSession, company_id: int, order_id: int) -> PurchaseOrder:
    result = await db.execute(
        purchase_order_query().where(
            PurchaseOrder.id == order_id, PurchaseOrder.company_id == company_id
        )
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return order


def build_order_lines(line_items) -> list[PurchaseOrderLineItem]:
    return [
        PurchaseOrderLineItem(
            description=item.description,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            total=line_total(item.quantity, item.unit_cost),
            inventory_item_id=item.inventory_item_id,
        )
        for item in line_items
    ]


def apply_totals(order: PurchaseOrder):
    totals = calculate_totals(
        (line.total for line in order.line_items), order.tax_rate, order.discount
    )
    if totals["total"] < 0:
        raise HTTPException(status_code=400, detail="Discount cannot exceed the order amount")
    for field, value in totals.items():
        setattr(order, field, value)


@router.get("", response_model=PaginatedResponse[PurchaseOrderResponse])
async def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(
        None, pattern="^(draft|sent|approved|rejected|converted)$"
    ),
    vendor: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List purchase orders with pagination and filters"""
    query = purchase_order_query().where(PurchaseOrder.company_id == company.id)
    if status:
        query = query.where(PurchaseOrder.status == status)
    if vendor:
        query = query.where(
            or_(
                PurchaseOrder.vendor.ilike(f"%{vendor}%"),
                PurchaseOrder.po_number.ilike(f"%{vendor}%"),
            )
        )
    if date_from:
        query = query.where(PurchaseOrder.order_date >= date_from)
    if date_to:
        query = query.where(PurchaseOrder.order_date <= date_to)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(PurchaseOrder.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[PurchaseOrderResponse.model_validate(o) for o in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{order_id}", response_model=PurchaseOrderResponse)
async def get_order(
    order_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return PurchaseOrderResponse.model_validate(await get_order_or_404(db, company.id, order_id))


@router.post("", response_model=PurchaseOrderResponse, status_code=201)
async def create_order(
    order_data: PurchaseOrderCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create a purchase order with line items"""
    order = PurchaseOrder(
        **order_data.model_dump(exclude={"line_items", "order_date"}),
        company_id=company.id,
        po_number=await PurchasingService.next_po_number(db, company.id),
        order_date=order_data.order_date or date.today(),
        line_items=build_order_lines(order_data.line_items),
    )
    apply_totals(order)
    db.add(order)
    await db.commit()
    logger.info(f"Created purchase order {order.po_number} for company {company.id}")

    return PurchaseOrderResponse.model_validate(await get_order_or_404(db, company.id, order.id))


@router.put("/{order_id}", response_model=PurchaseOrderResponse)
async def update_order(
    order_id: int,
    order_data: PurchaseOrderUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Update a purchase order; converted orders are read-only"""
    order = await get_order_or_404(db, company.id, order_id)
    if order.status == "converted":
        raise HTTPException(status_code=400, detail="Converted purchase orders cannot be edited")

    update_data = order_data.model_dump(exclude_unset=True, exclude={"line_items"})
    for field, value in update_data.items():
        setattr(order, field, value)
    if order_data.line_items is not None:
        order.line_items = build_order_lines(order_data.line_items)
    apply_totals(order)

    await db.commit()
    return PurchaseOrderResponse.model_validate(await get_order_or_404(db, company.id, order.id))


@router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    order = await get_order_or_404(db, company.id, order_id)
    await db.delete(order)
    await db.commit()
    return None


@router.post("/{order_id}/convert", response_model=PurchaseResponse, status_code=201)
async def convert_order(
    order_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Convert a purchase order into a pending purchase"""
    order = await get_order_or_404(db, company.id, order_id)
    try:
        purchase = await PurchasingService.convert_order(db, order)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase.id))
