"""Company API Endpoints

Tenant companies and their members.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from bizsuite.api.deps import get_current_user
from bizsuite.core.database import get_db
from bizsuite.models.company import Company, CompanyMember
from bizsuite.models.user import User
from bizsuite.schemas.company import (
    CompanyCreate,
    CompanyResponse,
    CompanyUpdate,
    MemberCreate,
    MemberResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/companies", tags=["companies"])


async def _get_membership(db: AsyncSession, company_id: int, user: User) -> CompanyMember:
    result = await db.execute(
        select(CompanyMember).where(
            CompanyMember.company_id == company_id,
            CompanyMember.user_id == user.id,
        )
    )
    membership = result.scalar_one_or_none()
    if not membership:
        # do not reveal whether the company exists
        raise HTTPException(status_code=404, detail="Company not found")
    return membership


def _require_admin(membership: CompanyMember):
    if membership.role not in ("owner", "admin"):
        raise HTTPException(status_code=403, detail="Owner or admin role required")


@router.get("", response_model=list[CompanyResponse])
async def list_companies(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List companies the current user belongs to"""
    result = await db.execute(
        select(Company)
        .join(CompanyMember, CompanyMember.company_id == Company.id)
        .where(CompanyMember.user_id == current_user.id)
        .order_by(Company.name)
    )
    return [CompanyResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    company_data: CompanyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a company owned by the current user"""
    company = Company(**company_data.model_dump())
    company.members.append(CompanyMember(user_id=current_user.id, role="owner"))
    db.add(company)
    await db.commit()
    await db.refresh(company)
    logger.info(f"User {current_user.username} created company {company.id}")
    return CompanyResponse.model_validate(company)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _get_membership(db, company_id, current_user)
    company = await db.get(Company, company_id)
    return CompanyResponse.model_validate(company)


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: int,
    company_data: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update company settings (owners and admins)"""
    _require_admin(await _get_membership(db, company_id, current_user))
    company = await db.get(Company, company_id)

    update_data = company_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(company, field, value)

    await db.commit()
    await db.refresh(company)
    return CompanyResponse.model_validate(company)


@router.delete("/{company_id}", status_code=204)
async def delete_company(
    company_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a company (owner only)"""
    membership = await _get_membership(db, company_id, current_user)
    if membership.role != "owner":
        raise HTTPException(status_code=403, detail="Only the owner can delete a company")

    result = await db.execute(
        select(Company).options(selectinload(Company.members)).where(Company.id == company_id)
    )
    await db.delete(result.scalar_one())
    await db.commit()
    logger.info(f"Company {company_id} deleted by {current_user.username}")
    return None


@router.get("/{company_id}/members", response_model=list[MemberResponse])
async def list_members(
    company_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _get_membership(db, company_id, current_user)
    result = await db.execute(
        select(CompanyMember)
        .where(CompanyMember.company_id == company_id)
        .order_by(CompanyMember.id)
    )
    return [MemberResponse.model_validate(m) for m in result.scalars().all()]


@router.post("/{company_id}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    company_id: int,
    member_data: MemberCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add an existing user to the company"""
    membership = await _get_membership(db, company_id, current_user)
    _require_admin(membership)
    if member_data.role == "owner" and membership.role != "owner":
        raise HTTPException(status_code=403, detail="Only the owner can add owners")

    result = await db.execute(select(User).where(User.username == member_data.username))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=400, detail="User not found")

    existing = await db.execute(
        select(CompanyMember).where(
            CompanyMember.company_id == company_id,
            CompanyMember.user_id == user.id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="User is already a member")

    member = CompanyMember(company_id=company_id, user_id=user.id, role=member_data.role)
    db.add(member)
    await db.commit()
    await db.refresh(member)
    logger.info(f"Added {user.username} to company {company_id} as {member.role}")
    return MemberResponse.model_validate(member)
