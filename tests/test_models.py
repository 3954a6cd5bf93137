import pytest
from sqlalchemy import select
from bizsuite.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from bizsuite.models import Company, CompanyMember, InventoryItem, User


def test_user_model():
    user = User(
        username="testuser",
        password_hash="hashed123",
        email="test@example.com"
    )
    assert user.username == "testuser"
    assert user.email == "test@example.com"
    assert user.is_active is True


def test_password_hashing():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_access_token_round_trip():
    token = create_access_token({"sub": "alice"})
    assert decode_access_token(token)["sub"] == "alice"
    assert decode_access_token("not-a-token") is None


@pytest.mark.asyncio
async def test_company_membership_persists(db_session):
    user = User(username="owner", password_hash="x")
    company = Company(name="Acme")
    company.members.append(CompanyMember(user=user, role="owner"))
    db_session.add(company)
    await db_session.commit()

    result = await db_session.execute(
        select(CompanyMember).where(CompanyMember.company_id == company.id)
    )
    member = result.scalar_one()
    assert member.user_id == user.id
    assert member.role == "owner"


@pytest.mark.asyncio
async def test_inventory_defaults(db_session):
    company = Company(name="Acme")
    db_session.add(company)
    await db_session.flush()

    item = InventoryItem(company_id=company.id, sku="CEM-50", name="Cement 50kg")
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)

    assert item.quantity_on_hand == 0
    assert item.unit == "each"
    assert company.country == "ZA"
    assert company.vat_rate == 0.15
