from typing import List

from sqlmodel import Session, select

from storefront.models.address import Address
from storefront.models.user import User
from storefront.schemas.address_schemas import AddressCreate
from storefront.services.order_ledger import DEFAULT_COUNTRY, commit_or_raise


def list_addresses(session: Session, user: User) -> List[Address]:
    addresses = session.exec(
        select(Address)
        .where(Address.user_id == user.id)
        .order_by(Address.created_at)
    ).all()
    # default first
    return sorted(addresses, key=lambda a: not a.is_default)


def add_address(session: Session, user: User, data: AddressCreate) -> Address:
    existing = list_addresses(session, user)
    is_default = data.is_default or not existing

    if is_default:
        for address in existing:
            if address.is_default:
                address.is_default = False
                session.add(address)

    address = Address(
        user_id=user.id,
        label=data.label.strip() or "Home",
        name=data.name.strip(),
        phone=data.phone.strip(),
        address=data.address.strip(),
        city=data.city.strip(),
        pincode=data.pincode.strip(),
        country=data.country.strip() or DEFAULT_COUNTRY,
        is_default=is_default,
    )
    session.add(address)
    commit_or_raise(session, None, "save address")
    session.refresh(address)
    return address
