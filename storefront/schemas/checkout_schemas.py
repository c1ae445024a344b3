# storefront/schemas/checkout_schemas.py
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Literal, Optional

from storefront.constants.order_status import PaymentMethod
from storefront.schemas.order_schemas import OrderItemIn, normalize_payment_method


class ShippingForm(BaseModel):
    full_name: str = Field(
        default="",
        validation_alias=AliasChoices("fullName", "customerName", "name", "full_name"),
    )
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = Field(
        default="",
        validation_alias=AliasChoices("postalCode", "pincode", "postal_code"),
    )
    country: str = ""


class CheckoutRequest(BaseModel):
    items: List[OrderItemIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "cart", "cartItems"),
    )
    address_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("addressId", "address_id"),
    )
    shipping: Optional[ShippingForm] = None
    delivery_speed: Literal["standard", "express"] = Field(
        default="standard",
        validation_alias=AliasChoices("deliverySpeed", "delivery_speed"),
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.cod,
        validation_alias=AliasChoices("paymentMethod", "payment_method"),
    )
    promo_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("promoCode", "promo_code"),
    )
    save_to_address_book: bool = Field(
        default=False,
        validation_alias=AliasChoices("saveToAddressBook", "save_to_address_book"),
    )

    @field_validator("payment_method", mode="before")
    @classmethod
    def _normalize_method(cls, value):
        return normalize_payment_method(value)


class PaymentSessionRequest(BaseModel):
    order_id: str = Field(default="", validation_alias=AliasChoices("orderId", "order_id"))
