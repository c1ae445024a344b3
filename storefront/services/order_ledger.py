import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, or_, select

from storefront.config import settings
from storefront.constants.order_status import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    is_transition_allowed,
)
from storefront.errors import NotFoundError, PersistenceError, ValidationError
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.user import User, UserOrderLink
from storefront.schemas.order_schemas import OrderCreate
from storefront.utils.money import money_equal, round_money

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "India"

REQUIRED_FIELDS = (
    ("customer_name", "Customer name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("address", "Shipping address"),
    ("city", "City"),
    ("postal_code", "Postal code"),
)

_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def _touch(order: Order):
    """Bump updated_at, never letting it stand still or go backwards."""
    now = datetime.utcnow()
    if order.updated_at and now <= order.updated_at:
        now = order.updated_at + timedelta(microseconds=1)
    order.updated_at = now


def commit_or_raise(session: Session, order_id: Optional[str], action: str):
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Database error while trying to {action} (order {order_id or '-'})")
        raise PersistenceError("Could not save changes, please try again")


def _amount(value: Optional[float], label: str) -> float:
    if value is None:
        return 0.0
    if value < 0:
        raise ValidationError(f"{label} cannot be negative")
    return float(round_money(value))


def _validate_order_request(data: OrderCreate):
    for field, label in REQUIRED_FIELDS:
        if not (getattr(data, field) or "").strip():
            raise ValidationError(f"{label} is required")

    if not _EMAIL_RE.fullmatch(data.email.strip()):
        raise ValidationError("A valid email is required")

    if not data.cart_items:
        raise ValidationError("Cart is empty")

    for item in data.cart_items:
        if item.quantity < 1:
            raise ValidationError(f"Quantity for {item.design_code} must be at least 1")
        if item.unit_price < 0:
            raise ValidationError(f"Price for {item.design_code} cannot be negative")


def price_breakdown(data: OrderCreate) -> dict:
    """
    Resolve the pricing fields of an order request.

    Client totals are checked against the line items rather than trusted.
    """
    shipping = _amount(data.shipping_amount, "Shipping amount")
    tax = _amount(data.tax_amount, "Tax amount")
    discount = _amount(data.discount_amount, "Discount amount")

    lines_total = round_money(
        sum(round_money(i.unit_price) * i.quantity for i in data.cart_items)
    )

    if data.total_amount is None:
        subtotal = round_money(data.subtotal_amount) if data.subtotal_amount is not None else lines_total
        total = round_money(subtotal + round_money(shipping) + round_money(tax) - round_money(discount))
    else:
        total = round_money(data.total_amount)
        subtotal = round_money(data.subtotal_amount) if data.subtotal_amount is not None else total

    if total <= 0:
        raise ValidationError("Total amount must be greater than zero")

    if not money_equal(subtotal, lines_total):
        raise ValidationError("Subtotal does not match the cart items")

    expected_total = subtotal + round_money(shipping) + round_money(tax) - round_money(discount)
    if not money_equal(total, expected_total):
        raise ValidationError(
            "Total amount must equal subtotal + shipping + tax - discount"
        )

    return {
        "subtotal_amount": float(subtotal),
        "shipping_amount": shipping,
        "tax_amount": tax,
        "discount_amount": discount,
        "total_amount": float(total),
    }


def find_by_idempotency_key(session: Session, key: str) -> Optional[Order]:
    return session.exec(select(Order).where(Order.idempotency_key == key)).first()


def link_order_to_user(session: Session, user: User, order_id: str):
    if session.get(UserOrderLink, (user.id, order_id)) is None:
        session.add(UserOrderLink(user_id=user.id, order_id=order_id))


def create_order(
    session: Session,
    data: OrderCreate,
    user: Optional[User] = None,
    idempotency_key: Optional[str] = None,
) -> Tuple[Order, bool]:
    """
    Persist a new order from a cart snapshot.

    Returns ``(order, created)``. ``created`` is False only when an
    idempotency key matched an order that already exists.
    """
    if idempotency_key:
        existing = find_by_idempotency_key(session, idempotency_key)
        if existing:
            logger.info(f"Order submission replayed for key {idempotency_key}, returning {existing.id}")
            return existing, False

    _validate_order_request(data)
    pricing = price_breakdown(data)

    email = data.email.strip()
    owner = user or session.exec(select(User).where(User.email == email)).first()

    payment_status = (
        PaymentStatus.pending if data.payment_method == PaymentMethod.card else PaymentStatus.unpaid
    )

    order = Order(
        customer_name=data.customer_name.strip(),
        email=email,
        phone=data.phone.strip(),
        shipping_address=data.address.strip(),
        shipping_city=data.city.strip(),
        shipping_postal_code=data.postal_code.strip(),
        shipping_country=(data.country or "").strip() or DEFAULT_COUNTRY,
        promo_code=(data.promo_code or "").strip() or None,
        currency=(data.currency or settings.default_currency).upper(),
        delivery_speed=data.delivery_speed,
        payment_method=data.payment_method.value,
        payment_status=payment_status.value,
        status=OrderStatus.received.value,
        user_email=owner.email if owner else None,
        is_guest=owner is None,
        idempotency_key=idempotency_key,
        **pricing,
    )
    order.updated_at = order.created_at
    session.add(order)

    for position, item in enumerate(data.cart_items):
        session.add(OrderItem(
            order_id=order.id,
            position=position,
            product_reference=item.product_reference,
            design_name=item.design_name,
            design_code=item.design_code,
            unit_price=float(round_money(item.unit_price)),
            quantity=item.quantity,
            image_url=item.image_url or "",
        ))

    if user is not None:
        link_order_to_user(session, user, order.id)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        if idempotency_key:
            # lost a race against a concurrent submit with the same key
            existing = find_by_idempotency_key(session, idempotency_key)
            if existing:
                return existing, False
        logger.exception(f"Integrity error while creating order {order.id}")
        raise PersistenceError("Could not save the order, please try again")
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Database error while creating order {order.id}")
        raise PersistenceError("Could not save the order, please try again")

    session.refresh(order)
    logger.info(
        f"Order {order.id} created: {order.payment_method}/{order.payment_status}, "
        f"total {order.total_amount} {order.currency}"
    )
    return order, True


def get_order(session: Session, order_id: str) -> Order:
    order = session.get(Order, order_id) if order_id else None
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(session: Session) -> List[Order]:
    return session.exec(select(Order).order_by(Order.created_at.desc())).all()


def list_orders_for_email(session: Session, email: str) -> List[Order]:
    return session.exec(
        select(Order)
        .where(or_(Order.email == email, Order.user_email == email))
        .order_by(Order.created_at.desc())
    ).all()


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid status '{value}'. Allowed: {allowed}")


def update_status(session: Session, order_id: str, new_status: str) -> Order:
    requested = parse_status(new_status)
    order = get_order(session, order_id)

    current = OrderStatus(order.status)
    if settings.enforce_status_transitions and not is_transition_allowed(current, requested):
        raise ValidationError(
            f"Invalid status change from {current.value} to {requested.value}"
        )

    order.status = requested.value
    _touch(order)
    session.add(order)
    commit_or_raise(session, order.id, "update order status")
    session.refresh(order)

    logger.info(f"Order {order.id} status changed from {current.value} to {requested.value}")
    return order


def find_for_reconciliation(
    session: Session,
    order_id: Optional[str] = None,
    provider_session_id: Optional[str] = None,
) -> Optional[Order]:
    if order_id:
        order = session.get(Order, order_id)
        if order:
            return order
    if provider_session_id:
        return session.exec(
            select(Order).where(Order.provider_session_id == provider_session_id)
        ).first()
    return None


# provider outcomes that must not overwrite a settled payment
NO_DOWNGRADE = {
    PaymentStatus.failed: (PaymentStatus.paid.value, PaymentStatus.refunded.value),
    PaymentStatus.paid: (PaymentStatus.refunded.value,),
}


def reconcile_payment(
    session: Session,
    *,
    payment_status: PaymentStatus,
    order_id: Optional[str] = None,
    provider_session_id: Optional[str] = None,
    payment_provider: Optional[str] = None,
    payment_id: Optional[str] = None,
) -> Optional[Order]:
    """
    Apply a provider payment outcome to an order.

    Re-applying the same outcome leaves the order untouched, updated_at
    included. Returns None when no order matches.
    """
    order = find_for_reconciliation(session, order_id, provider_session_id)
    if order is None:
        return None

    if order.payment_status in NO_DOWNGRADE.get(payment_status, ()):
        logger.warning(
            f"Ignoring '{payment_status.value}' for order {order.id}: already {order.payment_status}"
        )
        return order

    changes = {"payment_status": payment_status.value}
    if payment_provider is not None:
        changes["payment_provider"] = payment_provider
        changes["payment_method"] = PaymentMethod.card.value
    if payment_id is not None:
        changes["payment_id"] = payment_id
    if provider_session_id is not None:
        changes["provider_session_id"] = provider_session_id

    changed = {k: v for k, v in changes.items() if getattr(order, k) != v}
    if not changed:
        logger.info(f"Payment for order {order.id} already reconciled as {payment_status.value}")
        return order

    for field, value in changed.items():
        setattr(order, field, value)
    _touch(order)
    session.add(order)
    commit_or_raise(session, order.id, "reconcile payment")
    session.refresh(order)

    logger.info(f"Order {order.id} payment reconciled: {order.payment_status}")
    return order


def attach_payment_session(session: Session, order: Order, provider: str, provider_session_id: str) -> Order:
    order.payment_method = PaymentMethod.card.value
    order.payment_provider = provider
    order.provider_session_id = provider_session_id
    if order.payment_status != PaymentStatus.paid.value:
        order.payment_status = PaymentStatus.pending.value
    _touch(order)
    session.add(order)
    commit_or_raise(session, order.id, "attach payment session")
    session.refresh(order)
    return order
