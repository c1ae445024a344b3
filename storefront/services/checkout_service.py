import logging
from typing import Optional

from sqlmodel import Session

from storefront.config import settings
from storefront.constants.order_status import PaymentMethod, PaymentStatus
from storefront.errors import (
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    StorefrontError,
    ValidationError,
)
from storefront.models.address import Address
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.address_schemas import AddressCreate
from storefront.schemas.checkout_schemas import CheckoutRequest, ShippingForm
from storefront.schemas.order_schemas import OrderCreate
from storefront.services.address_book import add_address
from storefront.services.cart import Cart
from storefront.services.order_ledger import create_order, get_order
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.payment_service import create_payment_session, landing_url
from storefront.utils.token import decode_order_reference

logger = logging.getLogger(__name__)

DESTINATION_FIELDS = (
    ("customer_name", "Name"),
    ("phone", "Phone"),
    ("address", "Street address"),
    ("city", "City"),
    ("postal_code", "Postal code"),
)


def shipping_fee(delivery_speed: str) -> float:
    if delivery_speed == "express":
        return settings.express_shipping_fee
    return 0.0


def validate_catalog_items(session: Session, cart: Cart):
    for line in cart.lines:
        if line.product_reference and session.get(Product, line.product_reference) is None:
            raise ValidationError(f"{line.design_name} is no longer available")


def resolve_destination(session: Session, request: CheckoutRequest, user: Optional[User]) -> dict:
    form = request.shipping or ShippingForm()

    if request.address_id is not None:
        if user is None:
            raise AuthenticationError("Sign in to use a saved address")
        address = session.get(Address, request.address_id)
        if not address or address.user_id != user.id:
            raise NotFoundError("Address not found")
        destination = {
            "customer_name": address.name,
            "phone": address.phone,
            "address": address.address,
            "city": address.city,
            "postal_code": address.pincode,
            "country": address.country,
        }
    else:
        destination = {
            "customer_name": form.full_name,
            "phone": form.phone,
            "address": form.address,
            "city": form.city,
            "postal_code": form.postal_code,
            "country": form.country,
        }

    destination = {k: (v or "").strip() for k, v in destination.items()}
    for field, label in DESTINATION_FIELDS:
        if not destination[field]:
            raise ValidationError(f"{label} is required")

    destination["email"] = (form.email or (user.email if user else "")).strip()
    return destination


def _remember_address(session: Session, user: User, destination: dict):
    try:
        add_address(session, user, AddressCreate(
            name=destination["customer_name"],
            phone=destination["phone"],
            address=destination["address"],
            city=destination["city"],
            pincode=destination["postal_code"],
            country=destination["country"],
        ))
    except PersistenceError:
        # order is already placed
        logger.warning(f"Could not save checkout address for user {user.id}")


def checkout(
    session: Session,
    gateway: PaymentGateway,
    request: CheckoutRequest,
    user: Optional[User],
    base_url: str,
    idempotency_key: Optional[str] = None,
) -> dict:
    """
    Turn a cart into an order and, for card payments, a hosted payment session.

    ``clearCart`` in the result tells the client when the cart may go: right
    away for COD, only after payment lands for card orders.
    """
    cart = Cart(request.items)
    cart.validate_for_checkout()
    validate_catalog_items(session, cart)

    destination = resolve_destination(session, request, user)

    order_request = OrderCreate.model_validate({
        **destination,
        "cart_items": cart.lines,
        "subtotal_amount": cart.subtotal,
        "shipping_amount": shipping_fee(request.delivery_speed),
        "tax_amount": 0,
        "discount_amount": 0,
        "promo_code": request.promo_code,
        "payment_method": request.payment_method,
        "delivery_speed": request.delivery_speed,
    })

    order, created = create_order(session, order_request, user, idempotency_key)

    if created and user is not None and request.save_to_address_book and request.address_id is None:
        _remember_address(session, user, destination)

    result = {
        "orderId": order.id,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "totalAmount": order.total_amount,
    }

    if order.payment_method == PaymentMethod.cod.value or order.payment_status == PaymentStatus.paid.value:
        return {**result, "clearCart": True, "redirectUrl": landing_url(base_url, order)}

    try:
        payment = create_payment_session(session, gateway, order.id, base_url)
    except StorefrontError as exc:
        # order stays pending without a session; the client retries against it
        logger.error(f"Order {order.id} placed but payment session failed: {exc.message}")
        exc.extra.setdefault("orderId", order.id)
        raise

    return {
        **result,
        "paymentStatus": PaymentStatus.pending.value,
        "clearCart": False,
        "redirectUrl": payment["url"],
        "sessionId": payment["sessionId"],
    }


def order_landing_status(session: Session, reference: str) -> dict:
    order = get_order(session, decode_order_reference(reference))
    paid = order.payment_status == PaymentStatus.paid.value
    return {
        "orderId": order.id,
        "status": order.status,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "totalAmount": order.total_amount,
        "clearCart": paid or order.payment_method == PaymentMethod.cod.value,
    }
