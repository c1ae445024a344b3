"""
Retry payment sessions for card orders that never got one.

Checkout writes the order first and opens the hosted session second. When
the second step fails the order is left pending with no session attached;
this job picks those orders up once they are old enough and tries again.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from storefront.config import settings
from storefront.constants.order_status import OrderStatus, PaymentMethod, PaymentStatus
from storefront.database import engine
from storefront.errors import StorefrontError
from storefront.models.order import Order
from storefront.services.payment_gateway import PaymentGateway, get_payment_gateway
from storefront.services.payment_service import create_payment_session

logger = logging.getLogger(__name__)


def find_unsessioned_orders(session: Session, older_than_minutes: int):
    cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)
    return session.exec(
        select(Order)
        .where(Order.payment_method == PaymentMethod.card.value)
        .where(Order.payment_status == PaymentStatus.pending.value)
        .where(Order.provider_session_id == None)  # noqa: E711
        .where(Order.status != OrderStatus.cancelled.value)
        .where(Order.created_at < cutoff)
        .order_by(Order.created_at)
    ).all()


def retry_unsessioned_orders(
    session: Session,
    gateway: PaymentGateway,
    base_url: str,
    older_than_minutes: Optional[int] = None,
) -> dict:
    if older_than_minutes is None:
        older_than_minutes = settings.stuck_session_minutes

    orders = find_unsessioned_orders(session, older_than_minutes)
    opened, failed = 0, 0

    for order in orders:
        try:
            create_payment_session(session, gateway, order.id, base_url)
            opened += 1
        except StorefrontError as exc:
            failed += 1
            logger.warning(f"Retry of payment session for order {order.id} failed: {exc.message}")

    logger.info(f"Payment session retry: {len(orders)} found, {opened} opened, {failed} failed")
    return {"found": len(orders), "opened": opened, "failed": failed}


def run():
    if not settings.base_url:
        logger.error("BASE_URL must be set to build payment redirect URLs")
        return None

    with Session(engine) as session:
        return retry_unsessioned_orders(session, get_payment_gateway(), settings.base_url)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    run()
