# storefront/schemas/order_schemas.py
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional

from storefront.constants.order_status import PaymentMethod

# Names older storefront clients send for hosted card payments
_CARD_ALIASES = {"CARD", "STRIPE", "RAZORPAY", "ONLINE"}


def normalize_payment_method(value):
    if isinstance(value, str):
        upper = value.strip().upper()
        if upper in _CARD_ALIASES:
            return PaymentMethod.card.value
        return upper
    return value


class OrderItemIn(BaseModel):
    product_reference: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("productReference", "product", "product_reference"),
    )
    design_name: str = Field(
        default="Unnamed Design",
        validation_alias=AliasChoices("designName", "design_name"),
    )
    design_code: str = Field(
        default="N/A",
        validation_alias=AliasChoices("designCode", "design_code"),
    )
    unit_price: float = Field(
        validation_alias=AliasChoices("unitPrice", "price", "unit_price"),
        allow_inf_nan=False,
    )
    quantity: int = Field(default=1, validation_alias=AliasChoices("quantity", "qty"))
    image_url: str = Field(
        default="",
        validation_alias=AliasChoices("imageUrl", "image", "image_url"),
    )


class OrderCreate(BaseModel):
    customer_name: str = Field(
        default="",
        validation_alias=AliasChoices("customerName", "customer_name", "name"),
    )
    email: str = ""
    phone: str = ""

    address: str = Field(
        default="",
        validation_alias=AliasChoices("address", "street", "shippingAddress"),
    )
    city: str = ""
    postal_code: str = Field(
        default="",
        validation_alias=AliasChoices("postalCode", "pincode", "postal_code"),
    )
    country: str = ""

    cart_items: List[OrderItemIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("cartItems", "items", "lineItems", "cart_items"),
    )

    subtotal_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("subtotalAmount", "subtotal", "subtotal_amount"),
        allow_inf_nan=False,
    )
    shipping_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("shippingAmount", "shipping", "shipping_amount"),
        allow_inf_nan=False,
    )
    tax_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("taxAmount", "tax", "tax_amount"),
        allow_inf_nan=False,
    )
    discount_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("discountAmount", "discount", "discount_amount"),
        allow_inf_nan=False,
    )
    promo_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("promoCode", "promo_code"),
    )
    total_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("totalAmount", "total", "total_amount"),
        allow_inf_nan=False,
    )
    currency: Optional[str] = None

    payment_method: PaymentMethod = Field(
        default=PaymentMethod.cod,
        validation_alias=AliasChoices("paymentMethod", "payment_method"),
    )
    delivery_speed: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("deliverySpeed", "delivery_speed"),
    )

    @field_validator("payment_method", mode="before")
    @classmethod
    def _normalize_method(cls, value):
        return normalize_payment_method(value)


class StatusUpdateRequest(BaseModel):
    order_id: str = Field(default="", validation_alias=AliasChoices("orderId", "order_id"))
    new_status: str = Field(default="", validation_alias=AliasChoices("newStatus", "new_status", "status"))


def order_to_dict(order) -> dict:
    return {
        "id": order.id,
        "customerName": order.customer_name,
        "email": order.email,
        "phone": order.phone,
        "shippingAddress": {
            "address": order.shipping_address,
            "city": order.shipping_city,
            "postalCode": order.shipping_postal_code,
            "country": order.shipping_country,
        },
        "cartItems": [
            {
                "productReference": i.product_reference,
                "designName": i.design_name,
                "designCode": i.design_code,
                "unitPrice": i.unit_price,
                "quantity": i.quantity,
                "imageUrl": i.image_url,
            }
            for i in order.items
        ],
        "subtotalAmount": order.subtotal_amount,
        "shippingAmount": order.shipping_amount,
        "taxAmount": order.tax_amount,
        "discountAmount": order.discount_amount,
        "promoCode": order.promo_code,
        "totalAmount": order.total_amount,
        "currency": order.currency,
        "deliverySpeed": order.delivery_speed,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "paymentProvider": order.payment_provider,
        "paymentId": order.payment_id,
        "providerSessionId": order.provider_session_id,
        "status": order.status,
        "userEmail": order.user_email,
        "isGuest": order.is_guest,
        "createdAt": order.created_at.isoformat(),
        "updatedAt": order.updated_at.isoformat(),
    }
