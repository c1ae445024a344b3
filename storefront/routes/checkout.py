from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest, PaymentSessionRequest
from storefront.services.checkout_service import checkout, order_landing_status
from storefront.services.payment_gateway import PaymentGateway, get_payment_gateway
from storefront.services.payment_service import create_payment_session
from storefront.utils.token import get_optional_user

router = APIRouter()


def site_base_url(request: Request) -> str:
    return (settings.base_url or str(request.base_url)).rstrip("/")


@router.post("")
def place_checkout(
    payload: CheckoutRequest,
    request: Request,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return checkout(
        session,
        gateway,
        payload,
        current_user,
        base_url=site_base_url(request),
        idempotency_key=(idempotency_key or "").strip() or None,
    )


@router.post("/payment-session")
def open_payment_session(
    payload: PaymentSessionRequest,
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return create_payment_session(
        session,
        gateway,
        payload.order_id.strip(),
        base_url=site_base_url(request),
    )


@router.get("/success")
def payment_landing(
    ref: str,
    session: Session = Depends(get_session),
):
    return order_landing_status(session, ref)
