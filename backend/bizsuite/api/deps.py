"""Request dependencies: authenticated user and tenant company."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizsuite.core.database import get_db
from bizsuite.core.exceptions import BusinessRuleError
from bizsuite.core.security import decode_access_token
from bizsuite.models.company import Company, CompanyMember
from bizsuite.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if not payload or not isinstance(payload.get("sub"), str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.username == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


async def get_membership(
    x_company_id: int = Header(..., alias="X-Company-ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CompanyMember:
    """Membership of the current user in the company named by ``X-Company-ID``"""
    result = await db.execute(
        select(CompanyMember).where(
            CompanyMember.company_id == x_company_id,
            CompanyMember.user_id == current_user.id,
        )
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No access to this company",
        )
    return membership


async def get_current_company(
    membership: CompanyMember = Depends(get_membership),
    db: AsyncSession = Depends(get_db),
) -> Company:
    company = await db.get(Company, membership.company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


async def require_company_admin(
    membership: CompanyMember = Depends(get_membership),
) -> CompanyMember:
    if membership.role not in ("owner", "admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner or admin role required",
        )
    return membership


def bad_request(error: BusinessRuleError) -> HTTPException:
    """Translate a business rule violation into a 400 response"""
    return HTTPException(status_code=400, detail=str(error))
