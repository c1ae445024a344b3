from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.order_schemas import order_to_dict
from storefront.services.order_ledger import list_orders_for_email
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("/me/orders")
def my_orders(
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    response.headers["Cache-Control"] = "no-store"
    return [order_to_dict(o) for o in list_orders_for_email(session, current_user.email)]
