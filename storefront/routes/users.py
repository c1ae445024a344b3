from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.address_schemas import AddressCreate
from storefront.services.address_book import add_address, list_addresses
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("/me/addresses")
def my_addresses(
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    response.headers["Cache-Control"] = "no-store"
    return {"addresses": list_addresses(session, current_user)}


@router.post("/me/addresses", status_code=status.HTTP_201_CREATED)
def save_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    add_address(session, current_user, data)
    return {"success": True, "addresses": list_addresses(session, current_user)}
