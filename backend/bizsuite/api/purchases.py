"""Purchase API Endpoints

CRUD operations for purchases, goods receipt and supplier payments.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
from datetime import date
from bizsuite.api.deps import bad_request, get_current_company
from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.models.company import Company
from bizsuite.models.purchasing import Purchase
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.purchasing import (
    PURCHASE_STATUS_PATTERN,
    PurchaseCreate,
    PurchasePaymentCreate,
    PurchaseResponse,
    PurchaseStatusResponse,
    PurchaseUpdate,
    ReceiveRequest,
)
from bizsuite.services.documents import purchase_payment_status, purchase_status_badge
from bizsuite.services.purchasing import PurchasingService, purchase_query

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


async def get_purchase_or_404(db: AsyncSession, company_id: int, purchase_id: int) -> Purchase:
    result = await db.execute(
        purchase_query().where(Purchase.id == purchase_id, Purchase.company_id == company_id)
    )
    purchase = result.scalar_one_or_none()
    if not purchase:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return purchase


@router.get("", response_model=PaginatedResponse[PurchaseResponse])
async def list_purchases(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=PURCHASE_STATUS_PATTERN),
    vendor: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List purchases with pagination and filters"""
    query = purchase_query().where(Purchase.company_id == company.id)
    if status:
        query = query.where(Purchase.status == status)
    if vendor:
        query = query.where(
            or_(
                Purchase.vendor.ilike(f"%{vendor}%"),
                Purchase.supplier_invoice_number.ilike(f"%{vendor}%"),
            )
        )
    if date_from:
        query = query.where(Purchase.purchase_date >= date_from)
    if date_to:
        query = query.where(Purchase.purchase_date <= date_to)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Purchase.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[PurchaseResponse.model_validate(p) for p in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    purchase_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase_id))


@router.get("/{purchase_id}/status", response_model=PurchaseStatusResponse)
async def get_purchase_status(
    purchase_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Payment progress and display badge"""
    purchase = await get_purchase_or_404(db, company.id, purchase_id)
    return PurchaseStatusResponse(
        **purchase_payment_status(purchase),
        badge=purchase_status_badge(purchase),
    )


@router.post("", response_model=PurchaseResponse, status_code=201)
async def create_purchase(
    purchase_data: PurchaseCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    try:
        purchase = await PurchasingService.create_purchase(db, company.id, purchase_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase.id))


@router.put("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase(
    purchase_id: int,
    purchase_data: PurchaseUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Update purchase details or cancel it"""
    purchase = await get_purchase_or_404(db, company.id, purchase_id)
    if purchase_data.status == "cancelled" and purchase.status in ("received", "partly-received"):
        raise HTTPException(status_code=400, detail="Received purchases cannot be cancelled")
    if purchase_data.status == "pending" and purchase.status != "cancelled":
        raise HTTPException(status_code=400, detail="Status follows goods received")
    try:
        await PurchasingService.check_duplicate_supplier_invoice(
            db,
            company.id,
            purchase.vendor,
            purchase_data.supplier_invoice_number,
            exclude_id=purchase.id,
        )
    except BusinessRuleError as e:
        raise bad_request(e)

    update_data = purchase_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(purchase, field, value)

    await db.commit()
    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase.id))


@router.delete("/{purchase_id}", status_code=204)
async def delete_purchase(
    purchase_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    purchase = await get_purchase_or_404(db, company.id, purchase_id)
    if purchase.payments:
        raise HTTPException(status_code=400, detail="Purchases with payments cannot be deleted")
    await db.delete(purchase)
    await db.commit()
    return None


@router.post("/{purchase_id}/receive", response_model=PurchaseResponse)
async def receive_goods(
    purchase_id: int,
    receive_data: ReceiveRequest,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Record goods received against purchase lines"""
    purchase = await get_purchase_or_404(db, company.id, purchase_id)
    try:
        await PurchasingService.receive(
            db, purchase, receive_data.lines, receive_data.received_date
        )
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase.id))


@router.post("/{purchase_id}/payments", response_model=PurchaseResponse, status_code=201)
async def add_payment(
    purchase_id: int,
    payment_data: PurchasePaymentCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    purchase = await get_purchase_or_404(db, company.id, purchase_id)
    try:
        await PurchasingService.add_payment(db, purchase, payment_data)
    except BusinessRuleError as e:
        raise bad_request(e)
    await db.commit()

    return PurchaseResponse.model_validate(await get_purchase_or_404(db, company.id, purchase.id))
