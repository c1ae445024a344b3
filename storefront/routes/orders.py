from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.order_schemas import OrderCreate
from storefront.services.order_ledger import create_order
from storefront.utils.token import get_optional_user

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreate,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order, created = create_order(
        session,
        payload,
        user=current_user,
        idempotency_key=(idempotency_key or "").strip() or None,
    )

    # only the id goes back; clients re-fetch when they need more
    if not created:
        return JSONResponse(status_code=status.HTTP_200_OK, content={"orderId": order.id})
    return {"orderId": order.id}
