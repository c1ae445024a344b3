from enum import Enum


class OrderStatus(str, Enum):
    received = "Received"
    fabric_sourcing = "Fabric Sourcing"
    printing = "Printing"
    quality_check = "Quality Check"
    shipped = "Shipped"
    delivered = "Delivered"
    cancelled = "Cancelled"


class PaymentStatus(str, Enum):
    unpaid = "unpaid"
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class PaymentMethod(str, Enum):
    cod = "COD"
    card = "CARD"


# Manufacturing flow, in order
STATUS_FLOW = [
    OrderStatus.received,
    OrderStatus.fabric_sourcing,
    OrderStatus.printing,
    OrderStatus.quality_check,
    OrderStatus.shipped,
    OrderStatus.delivered,
]

TERMINAL_STATUSES = {OrderStatus.delivered, OrderStatus.cancelled}


def _forward_transitions():
    table = {}
    for index, status in enumerate(STATUS_FLOW):
        allowed = list(STATUS_FLOW[index + 1:])
        if status not in TERMINAL_STATUSES:
            allowed.append(OrderStatus.cancelled)
        table[status] = allowed
    table[OrderStatus.cancelled] = []
    return table


ALLOWED_TRANSITIONS = _forward_transitions()


def is_transition_allowed(current: OrderStatus, requested: OrderStatus) -> bool:
    if current == requested:
        return True
    return requested in ALLOWED_TRANSITIONS.get(current, [])
