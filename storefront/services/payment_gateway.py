"""
Hosted payment providers.

Each gateway opens a provider-hosted checkout for one order and turns the
provider's webhook deliveries into a provider-neutral ``WebhookEvent``.
"""
import json
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import razorpay
import requests
import stripe

from storefront.config import settings
from storefront.errors import (
    ConfigurationError,
    SignatureVerificationError,
    UpstreamProviderError,
)

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout_session_completed"
CHECKOUT_SESSION_EXPIRED = "checkout_session_expired"

SESSION_CREATE_FAILED = "Payment session create failed"


@dataclass
class SessionRequest:
    order_id: str
    amount_minor: int
    currency: str
    description: str
    customer_name: str
    customer_email: str
    customer_phone: str
    success_url: str
    cancel_url: str
    idempotency_key: str
    existing_session_id: Optional[str] = None


@dataclass
class PaymentSession:
    session_id: str
    url: str


@dataclass
class WebhookEvent:
    type: str
    order_id: Optional[str] = None
    session_id: Optional[str] = None
    payment_reference: Optional[str] = None


def _load_event(provider: str, payload: bytes) -> dict:
    # only called after the signature checked out, so a bad body is acked and dropped
    try:
        event = json.loads(payload)
    except ValueError:
        logger.warning(f"Verified {provider} delivery is not JSON, ignoring it")
        return {}
    if not isinstance(event, dict):
        logger.warning(f"Verified {provider} delivery is not a JSON object, ignoring it")
        return {}
    return event


def _member(obj, key: str) -> dict:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, dict) else {}


def _text(obj: dict, key: str) -> Optional[str]:
    value = obj.get(key)
    return value if isinstance(value, str) and value else None


class PaymentGateway:
    name = ""
    signature_header = "signature"

    def create_session(self, request: SessionRequest) -> PaymentSession:
        raise NotImplementedError

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookEvent:
        raise NotImplementedError

    def _signature(self, headers: Mapping[str, str]) -> str:
        return headers.get(self.signature_header) or headers.get("signature") or ""


class StripeCheckoutGateway(PaymentGateway):
    """Stripe Checkout Sessions through the stripe SDK."""

    name = "stripe"
    signature_header = "stripe-signature"

    def __init__(
        self,
        secret_key: Optional[str],
        webhook_secret: Optional[str],
        timeout: float = 10.0,
        tolerance_seconds: int = 0,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self.tolerance_seconds = tolerance_seconds

    def session_params(self, request: SessionRequest) -> dict:
        # one aggregate line for the whole order keeps the payload stable
        return {
            "mode": "payment",
            "line_items": [
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": request.currency.lower(),
                        "unit_amount": request.amount_minor,
                        "product_data": {"name": request.description},
                    },
                }
            ],
            "customer_email": request.customer_email,
            "client_reference_id": request.order_id,
            "metadata": {"orderId": request.order_id},
            "success_url": f"{request.success_url}&session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": request.cancel_url,
        }

    def create_session(self, request: SessionRequest) -> PaymentSession:
        if not self.secret_key:
            raise ConfigurationError("Stripe not configured (missing STRIPE_SECRET_KEY)")

        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

        try:
            checkout_session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                idempotency_key=request.idempotency_key,
                **self.session_params(request),
            )
        except stripe.APIConnectionError as exc:
            logger.error(f"Stripe unreachable for order {request.order_id}: {exc}")
            raise UpstreamProviderError(SESSION_CREATE_FAILED)
        except stripe.StripeError as exc:
            logger.error(
                f"Stripe session create failed ({exc.http_status}) "
                f"for order {request.order_id}: {exc.user_message or exc}"
            )
            raise UpstreamProviderError(SESSION_CREATE_FAILED)

        session_id = getattr(checkout_session, "id", None)
        url = getattr(checkout_session, "url", None)
        if not session_id or not url:
            logger.error(f"Stripe session response missing id/url for order {request.order_id}")
            raise UpstreamProviderError(SESSION_CREATE_FAILED)

        return PaymentSession(session_id=session_id, url=url)

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookEvent:
        if not self.webhook_secret:
            raise ConfigurationError("Missing STRIPE_WEBHOOK_SECRET")

        # verify before parsing, construct_event would parse unverified bytes first
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                self._signature(headers),
                self.webhook_secret,
                tolerance=self.tolerance_seconds or None,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError):
            raise SignatureVerificationError("Invalid signature")

        event = _load_event(self.name, payload)
        event_type = _text(event, "type") or ""
        obj = _member(_member(event, "data"), "object")
        metadata = _member(obj, "metadata")

        return WebhookEvent(
            type=event_type.replace(".", "_"),
            order_id=_text(metadata, "orderId") or _text(obj, "client_reference_id"),
            session_id=_text(obj, "id"),
            payment_reference=_text(obj, "payment_intent") or _text(obj, "id"),
        )


class _TimeoutSession(requests.Session):
    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


RAZORPAY_EVENT_TYPES = {
    "payment_link.paid": CHECKOUT_SESSION_COMPLETED,
    "payment_link.expired": CHECKOUT_SESSION_EXPIRED,
    "payment_link.cancelled": CHECKOUT_SESSION_EXPIRED,
}

# payment link states that can still be paid
RAZORPAY_OPEN_LINK_STATES = {"created", "partially_paid"}


class RazorpayPaymentLinkGateway(PaymentGateway):
    """Razorpay Payment Links through the razorpay SDK."""

    name = "razorpay"
    signature_header = "x-razorpay-signature"

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        webhook_secret: Optional[str],
        timeout: float = 10.0,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    def _client(self) -> razorpay.Client:
        if not self.key_id or not self.key_secret:
            raise ConfigurationError(
                "Razorpay not configured (missing RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET)"
            )
        return razorpay.Client(
            session=_TimeoutSession(self.timeout),
            auth=(self.key_id, self.key_secret),
        )

    def _call(self, order_id: str, action, *args):
        try:
            return action(*args)
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.ServerError,
            razorpay.errors.GatewayError,
            requests.RequestException,
        ) as exc:
            logger.error(f"Razorpay payment link call failed for order {order_id}: {exc}")
            raise UpstreamProviderError(SESSION_CREATE_FAILED)

    def create_session(self, request: SessionRequest) -> PaymentSession:
        client = self._client()

        if request.existing_session_id:
            # reference_id is single use, so a retry hands back the live link
            link = self._call(request.order_id, client.payment_link.fetch, request.existing_session_id)
            if link.get("status") in RAZORPAY_OPEN_LINK_STATES and link.get("short_url"):
                return PaymentSession(session_id=link["id"], url=link["short_url"])
            logger.warning(
                f"Payment link {request.existing_session_id} for order {request.order_id} "
                f"is {link.get('status')}, cannot reuse it"
            )
            raise UpstreamProviderError(SESSION_CREATE_FAILED)

        data = {
            "amount": request.amount_minor,
            "currency": request.currency.upper(),
            "reference_id": request.idempotency_key[:40],
            "description": request.description,
            "customer": {
                "name": request.customer_name,
                "email": request.customer_email,
                "contact": request.customer_phone,
            },
            "notify": {"sms": False, "email": False},
            "notes": {"order_id": request.order_id},
            "callback_url": request.success_url,
            "callback_method": "get",
        }
        link = self._call(request.order_id, client.payment_link.create, data)

        if not link.get("id") or not link.get("short_url"):
            logger.error(f"Razorpay payment link response missing id/url for order {request.order_id}: {link}")
            raise UpstreamProviderError(SESSION_CREATE_FAILED)

        return PaymentSession(session_id=link["id"], url=link["short_url"])

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str]) -> WebhookEvent:
        if not self.webhook_secret:
            raise ConfigurationError("Missing RAZORPAY_WEBHOOK_SECRET")

        signature = self._signature(headers)
        if not signature:
            raise SignatureVerificationError("Invalid signature")

        # webhook verification needs no API credentials
        utility = razorpay.Client(auth=(self.key_id or "", self.key_secret or "")).utility
        try:
            utility.verify_webhook_signature(
                payload.decode("utf-8"), signature, self.webhook_secret
            )
        except (razorpay.errors.SignatureVerificationError, UnicodeDecodeError):
            raise SignatureVerificationError("Invalid signature")

        event = _load_event(self.name, payload)
        raw_type = _text(event, "event") or ""
        body = _member(event, "payload")
        link = _member(_member(body, "payment_link"), "entity")
        payment = _member(_member(body, "payment"), "entity")

        return WebhookEvent(
            type=RAZORPAY_EVENT_TYPES.get(raw_type, raw_type.replace(".", "_")),
            order_id=_text(_member(link, "notes"), "order_id"),
            session_id=_text(link, "id"),
            payment_reference=_text(payment, "id") or _text(link, "id"),
        )


def get_stripe_gateway() -> StripeCheckoutGateway:
    return StripeCheckoutGateway(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        timeout=settings.payment_timeout_seconds,
        tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
    )


def get_razorpay_gateway() -> RazorpayPaymentLinkGateway:
    return RazorpayPaymentLinkGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        webhook_secret=settings.razorpay_webhook_secret,
        timeout=settings.payment_timeout_seconds,
    )


GATEWAYS = {
    "stripe": get_stripe_gateway,
    "razorpay": get_razorpay_gateway,
}


def get_payment_gateway() -> PaymentGateway:
    factory = GATEWAYS.get((settings.payment_provider or "").lower())
    if factory is None:
        raise ConfigurationError(f"Unknown payment provider '{settings.payment_provider}'")
    return factory()


def provider_configured(provider: str) -> bool:
    provider = (provider or "").lower()
    if provider == "stripe":
        return bool(settings.stripe_secret_key and settings.stripe_webhook_secret)
    if provider == "razorpay":
        return bool(
            settings.razorpay_key_id
            and settings.razorpay_key_secret
            and settings.razorpay_webhook_secret
        )
    return False
