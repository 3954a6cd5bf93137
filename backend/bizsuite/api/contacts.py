"""Contact API Endpoints

CRUD operations for customers and suppliers.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional
from bizsuite.api.deps import get_current_company
from bizsuite.core.database import get_db
from bizsuite.models.company import Company
from bizsuite.models.contact import Contact
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.contact import ContactCreate, ContactUpdate, ContactResponse

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


async def get_contact_or_404(db: AsyncSession, company_id: int, contact_id: int) -> Contact:
    result = await db.execute(
        select(Contact).where(Contact.id == contact_id, Contact.company_id == company_id)
    )
    contact = result.scalar_one_or_none()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.get("", response_model=PaginatedResponse[ContactResponse])
async def list_contacts(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    contact_type: Optional[str] = Query(None, pattern="^(customer|supplier|both)$"),
    search: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List contacts with pagination and filters"""
    query = select(Contact).where(Contact.company_id == company.id)
    if contact_type:
        query = query.where(Contact.contact_type.in_([contact_type, "both"]))
    if search:
        query = query.where(
            or_(Contact.name.ilike(f"%{search}%"), Contact.email.ilike(f"%{search}%"))
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Contact.name).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[ContactResponse.model_validate(c) for c in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return ContactResponse.model_validate(await get_contact_or_404(db, company.id, contact_id))


@router.post("", response_model=ContactResponse, status_code=201)
async def create_contact(
    contact_data: ContactCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    contact = Contact(**contact_data.model_dump(), company_id=company.id)
    db.add(contact)
    await db.commit()
    await db.refresh(contact)
    return ContactResponse.model_validate(contact)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    contact_data: ContactUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    contact = await get_contact_or_404(db, company.id, contact_id)

    update_data = contact_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(contact, field, value)

    await db.commit()
    await db.refresh(contact)
    return ContactResponse.model_validate(contact)


@router.delete("/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    contact = await get_contact_or_404(db, company.id, contact_id)
    await db.delete(contact)
    await db.commit()
    return None


async def ensure_contact(db: AsyncSession, company_id: int, contact_id: Optional[int]):
    """Reject a referenced contact that does not belong to the company"""
    if contact_id is None:
        return
    result = await db.execute(
        select(Contact.id).where(Contact.id == contact_id, Contact.company_id == company_id)
    )
    if not result.first():
        raise HTTPException(status_code=400, detail="Contact not found")
