"""Inventory API Endpoints

CRUD operations for stock items and the low-stock report.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
from bizsuite.api.deps import get_current_company
from bizsuite.core.database import get_db
from bizsuite.models.company import Company
from bizsuite.models.inventory import InventoryItem
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryItemResponse,
)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


async def get_item_or_404(db: AsyncSession, company_id: int, item_id: int) -> InventoryItem:
    result = await db.execute(
        select(InventoryItem).where(
            InventoryItem.id == item_id, InventoryItem.company_id == company_id
        )
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


@router.get("", response_model=PaginatedResponse[InventoryItemResponse])
async def list_items(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List inventory items with pagination and filters"""
    query = select(InventoryItem).where(InventoryItem.company_id == company.id)
    if category:
        query = query.where(InventoryItem.category == category)
    if search:
        query = query.where(
            or_(
                InventoryItem.name.ilike(f"%{search}%"),
                InventoryItem.sku.ilike(f"%{search}%"),
            )
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(InventoryItem.sku).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[InventoryItemResponse.model_validate(i) for i in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/low-stock", response_model=list[InventoryItemResponse])
async def low_stock(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Items at or below their reorder level"""
    result = await db.execute(
        select(InventoryItem)
        .where(
            InventoryItem.company_id == company.id,
            InventoryItem.quantity_on_hand <= InventoryItem.reorder_level,
        )
        .order_by(InventoryItem.sku)
    )
    return [InventoryItemResponse.model_validate(i) for i in result.scalars().all()]


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_item(
    item_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return InventoryItemResponse.model_validate(await get_item_or_404(db, company.id, item_id))


@router.post("", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    item_data: InventoryItemCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Create a stock item; the SKU must be unique within the company"""
    existing = await db.execute(
        select(InventoryItem.id).where(
            InventoryItem.company_id == company.id, InventoryItem.sku == item_data.sku
        )
    )
    if existing.first():
        raise HTTPException(status_code=400, detail=f"SKU {item_data.sku} already exists")

    item = InventoryItem(**item_data.model_dump(), company_id=company.id)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return InventoryItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    item = await get_item_or_404(db, company.id, item_id)

    update_data = item_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(item, field, value)

    await db.commit()
    await db.refresh(item)
    return InventoryItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=204)
async def delete_item(
    item_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    item = await get_item_or_404(db, company.id, item_id)
    await db.delete(item)
    await db.commit()
    return None
