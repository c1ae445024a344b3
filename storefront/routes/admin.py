import hmac
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.dependencies.admin import ADMIN_COOKIE, require_admin
from storefront.errors import AuthenticationError, ConfigurationError, ValidationError
from storefront.schemas.order_schemas import StatusUpdateRequest, order_to_dict
from storefront.services.order_ledger import get_order, list_orders, update_status
from storefront.utils.token import create_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


class AdminLogin(BaseModel):
    password: str = ""


@router.post("/login")
def admin_login(payload: AdminLogin, response: Response):
    if not settings.admin_password:
        raise ConfigurationError("Admin login not configured (missing ADMIN_PASSWORD)")

    if not hmac.compare_digest(
        payload.password.encode("utf-8"), settings.admin_password.encode("utf-8")
    ):
        logger.warning("Rejected admin login attempt")
        raise AuthenticationError("Invalid password")

    token = create_admin_token()
    response.set_cookie(
        ADMIN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        path="/",
        max_age=settings.admin_token_expire_minutes * 60,
    )
    return {"success": True, "token": token}


@router.post("/logout")
def admin_logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE, path="/")
    return {"success": True}


@router.get("/orders")
def admin_list_orders(
    response: Response,
    session: Session = Depends(get_session),
    _: bool = Depends(require_admin),
):
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return [order_to_dict(o) for o in list_orders(session)]


@router.get("/orders/{order_id}")
def admin_order_details(
    order_id: str,
    response: Response,
    session: Session = Depends(get_session),
    _: bool = Depends(require_admin),
):
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return order_to_dict(get_order(session, order_id))


@router.patch("/orders")
def admin_update_order_status(
    payload: StatusUpdateRequest,
    session: Session = Depends(get_session),
    _: bool = Depends(require_admin),
):
    if not payload.order_id.strip() or not payload.new_status.strip():
        raise ValidationError("Order ID and New Status are required")

    order = update_status(session, payload.order_id.strip(), payload.new_status.strip())
    return order_to_dict(order)
