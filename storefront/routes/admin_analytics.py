from fastapi import APIRouter, Depends, Response
from sqlmodel import Session, func, select

from storefront.constants.order_status import OrderStatus, PaymentStatus
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.category import Category
from storefront.models.order import Order
from storefront.models.product import Product

router = APIRouter()


@router.get("/stats")
def dashboard_stats(
    response: Response,
    session: Session = Depends(get_session),
    _: bool = Depends(require_admin),
):
    total_products = session.exec(select(func.count(Product.id))).one()
    active_categories = session.exec(
        select(func.count(Category.id)).where(Category.is_active == True)  # noqa: E712
    ).one()

    by_status = dict(session.exec(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    ).all())
    by_payment = dict(session.exec(
        select(Order.payment_status, func.count(Order.id)).group_by(Order.payment_status)
    ).all())

    paid_revenue = session.exec(
        select(func.sum(Order.total_amount))
        .where(Order.payment_status == PaymentStatus.paid.value)
    ).one()

    response.headers["Cache-Control"] = "no-store, max-age=0"
    return {
        "totalProducts": total_products,
        "activeCategories": active_categories,
        "newOrders": by_status.get(OrderStatus.received.value, 0),
        "totalOrders": sum(by_status.values()),
        "ordersByStatus": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
        "ordersByPaymentStatus": {s.value: by_payment.get(s.value, 0) for s in PaymentStatus},
        "paidRevenue": paid_revenue or 0,
    }
