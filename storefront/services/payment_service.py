import hashlib
import logging
from typing import Mapping, Optional

from sqlmodel import Session

from storefront.config import settings
from storefront.constants.order_status import OrderStatus, PaymentStatus
from storefront.errors import ValidationError
from storefront.models.order import Order
from storefront.services.order_ledger import (
    attach_payment_session,
    find_for_reconciliation,
    get_order,
    reconcile_payment,
)
from storefront.services.payment_gateway import (
    CHECKOUT_SESSION_COMPLETED,
    CHECKOUT_SESSION_EXPIRED,
    PaymentGateway,
    SessionRequest,
)
from storefront.utils.money import to_minor_units
from storefront.utils.token import create_order_reference

logger = logging.getLogger(__name__)

IDEMPOTENCY_NAMESPACE = "checkout_session"


def idempotency_key_for(order_id: str) -> str:
    """Stable per order, so retried session calls reuse the provider-side intent."""
    return hashlib.sha256(f"{IDEMPOTENCY_NAMESPACE}:{order_id}".encode("utf-8")).hexdigest()


def landing_url(base_url: str, order: Order) -> str:
    reference = create_order_reference(order.id, order.created_at)
    return f"{base_url.rstrip('/')}/order-success?ref={reference}"


def _describe(order: Order) -> str:
    count = len(order.items)
    return f"{settings.store_name} Order ({count} item{'' if count == 1 else 's'})"


def create_payment_session(
    session: Session,
    gateway: PaymentGateway,
    order_id: str,
    base_url: str,
) -> dict:
    """
    Open a hosted payment session for an existing order.

    The order is only updated once the provider has answered; any failure
    leaves it pending and without a session so the call can be retried.
    """
    if not order_id:
        raise ValidationError("orderId required")

    order = get_order(session, order_id)

    if order.payment_status == PaymentStatus.paid.value:
        raise ValidationError("Order is already paid")
    if order.status == OrderStatus.cancelled.value:
        raise ValidationError("Order has been cancelled")

    amount_minor = to_minor_units(order.total_amount)
    if amount_minor <= 0:
        raise ValidationError("Invalid order amount")

    existing = order.provider_session_id if order.payment_provider == gateway.name else None

    request = SessionRequest(
        order_id=order.id,
        amount_minor=amount_minor,
        currency=order.currency or settings.default_currency,
        description=_describe(order),
        customer_name=order.customer_name,
        customer_email=order.email,
        customer_phone=order.phone,
        success_url=landing_url(base_url, order),
        cancel_url=f"{base_url.rstrip('/')}/checkout?canceled=1",
        idempotency_key=idempotency_key_for(order.id),
        existing_session_id=existing,
    )

    result = gateway.create_session(request)
    attach_payment_session(session, order, gateway.name, result.session_id)

    logger.info(f"{gateway.name} session {result.session_id} opened for order {order.id}")
    return {"url": result.url, "sessionId": result.session_id}


def handle_webhook(
    session: Session,
    gateway: PaymentGateway,
    payload: bytes,
    headers: Mapping[str, str],
) -> Optional[Order]:
    """
    Verify and apply one provider webhook delivery.

    Returns the reconciled order, or None when the event was ignored or its
    order could not be found. Unknown orders are logged, never raised, so the
    provider stops retrying.
    """
    event = gateway.parse_webhook(payload, headers)

    if event.type not in (CHECKOUT_SESSION_COMPLETED, CHECKOUT_SESSION_EXPIRED):
        logger.info(f"Ignoring {gateway.name} event {event.type or '<untyped>'}")
        return None

    if not event.order_id and not event.session_id:
        logger.warning(f"{gateway.name} {event.type} event carries no order reference")
        return None

    if event.type == CHECKOUT_SESSION_COMPLETED:
        order = reconcile_payment(
            session,
            payment_status=PaymentStatus.paid,
            order_id=event.order_id,
            provider_session_id=event.session_id,
            payment_provider=gateway.name,
            payment_id=event.payment_reference or event.session_id or "",
        )
    else:
        order = find_for_reconciliation(session, event.order_id, event.session_id)
        if (
            order is not None
            and order.provider_session_id
            and event.session_id
            and order.provider_session_id != event.session_id
        ):
            # an older session expiring must not fail the live one
            logger.info(
                f"Ignoring expiry of stale session {event.session_id} for order {order.id}"
            )
            return order
        if order is not None:
            order = reconcile_payment(
                session,
                payment_status=PaymentStatus.failed,
                order_id=order.id,
            )

    if order is None:
        logger.warning(
            f"Unresolved {gateway.name} {event.type} event: order {event.order_id or '-'} "
            f"/ session {event.session_id or '-'} not found"
        )
    return order
