"""CRM API Endpoints

Deals, the sales pipeline and support tickets.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional
from bizsuite.api.contacts import ensure_contact
from bizsuite.api.deps import get_current_company
from bizsuite.core.database import get_db
from bizsuite.models.company import Company
from bizsuite.models.crm import Deal, Ticket
from bizsuite.schemas.common import PaginatedResponse
from bizsuite.schemas.crm import (
    DEAL_STAGE_PATTERN,
    TICKET_PRIORITY_PATTERN,
    TICKET_STATUS_PATTERN,
    DealCreate,
    DealUpdate,
    DealResponse,
    PipelineResponse,
    TicketCreate,
    TicketUpdate,
    TicketResponse,
)
from bizsuite.services.crm import pipeline_summary

router = APIRouter(prefix="/api/crm", tags=["crm"])


async def get_deal_or_404(db: AsyncSession, company_id: int, deal_id: int) -> Deal:
    result = await db.execute(
        select(Deal).where(Deal.id == deal_id, Deal.company_id == company_id)
    )
    deal = result.scalar_one_or_none()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


async def get_ticket_or_404(db: AsyncSession, company_id: int, ticket_id: int) -> Ticket:
    result = await db.execute(
        select(Ticket).where(Ticket.id == ticket_id, Ticket.company_id == company_id)
    )
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


# ---------------------------------------------------------------------------
# Deals
# ---------------------------------------------------------------------------


@router.get("/deals", response_model=PaginatedResponse[DealResponse])
async def list_deals(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    stage: Optional[str] = Query(None, pattern=DEAL_STAGE_PATTERN),
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    query = select(Deal).where(Deal.company_id == company.id)
    if stage:
        query = query.where(Deal.stage == stage)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Deal.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[DealResponse.model_validate(d) for d in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/pipeline", response_model=PipelineResponse)
async def get_pipeline(
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """Deal count and value per stage"""
    result = await db.execute(select(Deal).where(Deal.company_id == company.id))
    return pipeline_summary(result.scalars().all())


@router.get("/deals/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return DealResponse.model_validate(await get_deal_or_404(db, company.id, deal_id))


@router.post("/deals", response_model=DealResponse, status_code=201)
async def create_deal(
    deal_data: DealCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    await ensure_contact(db, company.id, deal_data.contact_id)
    deal = Deal(**deal_data.model_dump(), company_id=company.id)
    db.add(deal)
    await db.commit()
    await db.refresh(deal)
    return DealResponse.model_validate(deal)


@router.put("/deals/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: int,
    deal_data: DealUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    deal = await get_deal_or_404(db, company.id, deal_id)

    update_data = deal_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(deal, field, value)

    await db.commit()
    await db.refresh(deal)
    return DealResponse.model_validate(deal)


@router.delete("/deals/{deal_id}", status_code=204)
async def delete_deal(
    deal_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    deal = await get_deal_or_404(db, company.id, deal_id)
    await db.delete(deal)
    await db.commit()
    return None


# ---------------------------------------------------------------------------
# Tickets
# ---------------------------------------------------------------------------


@router.get("/tickets", response_model=PaginatedResponse[TicketResponse])
async def list_tickets(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=TICKET_STATUS_PATTERN),
    priority: Optional[str] = Query(None, pattern=TICKET_PRIORITY_PATTERN),
    assigned_to: Optional[str] = None,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    """List tickets with pagination and filters"""
    query = select(Ticket).where(Ticket.company_id == company.id)
    if status:
        query = query.where(Ticket.status == status)
    if priority:
        query = query.where(Ticket.priority == priority)
    if assigned_to:
        query = query.where(Ticket.assigned_to == assigned_to)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Ticket.id.desc()).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return PaginatedResponse.create(
        items=[TicketResponse.model_validate(t) for t in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    return TicketResponse.model_validate(await get_ticket_or_404(db, company.id, ticket_id))


@router.post("/tickets", response_model=TicketResponse, status_code=201)
async def create_ticket(
    ticket_data: TicketCreate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    await ensure_contact(db, company.id, ticket_data.contact_id)
    ticket = Ticket(**ticket_data.model_dump(), company_id=company.id)
    db.add(ticket)
    await db.commit()
    await db.refresh(ticket)
    return TicketResponse.model_validate(ticket)


@router.put("/tickets/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    ticket_data: TicketUpdate,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_ticket_or_404(db, company.id, ticket_id)

    update_data = ticket_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(ticket, field, value)

    await db.commit()
    await db.refresh(ticket)
    return TicketResponse.model_validate(ticket)


@router.delete("/tickets/{ticket_id}", status_code=204)
async def delete_ticket(
    ticket_id: int,
    company: Company = Depends(get_current_company),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_ticket_or_404(db, company.id, ticket_id)
    await db.delete(ticket)
    await db.commit()
    return None
