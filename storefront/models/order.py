from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from uuid import uuid4

from storefront.constants.order_status import OrderStatus, PaymentMethod, PaymentStatus
from storefront.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)

    # customer snapshot, copied at checkout
    customer_name: str
    email: str = Field(index=True)
    phone: str

    shipping_address: str
    shipping_city: str
    shipping_postal_code: str
    shipping_country: str = Field(default="India")

    subtotal_amount: float
    shipping_amount: float = 0
    tax_amount: float = 0
    discount_amount: float = 0
    promo_code: Optional[str] = None
    total_amount: float
    currency: str = Field(default="INR")
    delivery_speed: Optional[str] = None

    payment_method: str = Field(default=PaymentMethod.cod.value)
    payment_status: str = Field(default=PaymentStatus.unpaid.value, index=True)
    payment_provider: str = Field(default="")
    payment_id: str = Field(default="")
    provider_session_id: Optional[str] = Field(default=None, index=True)

    status: str = Field(default=OrderStatus.received.value, index=True)

    user_email: Optional[str] = Field(default=None, index=True)
    is_guest: bool = Field(default=True)

    # client supplied key collapsing double submits
    idempotency_key: Optional[str] = Field(default=None, unique=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"order_by": "OrderItem.position", "lazy": "selectin"},
    )
