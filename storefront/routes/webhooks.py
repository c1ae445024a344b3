from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from storefront.database import get_session
from storefront.services.payment_gateway import (
    PaymentGateway,
    get_razorpay_gateway,
    get_stripe_gateway,
)
from storefront.services.payment_service import handle_webhook

router = APIRouter()


async def _receive(request: Request, session: Session, gateway: PaymentGateway):
    # signatures cover the exact bytes, so read the body before any parsing
    payload = await request.body()
    await run_in_threadpool(handle_webhook, session, gateway, payload, request.headers)
    return {"received": True}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_stripe_gateway),
):
    return await _receive(request, session, gateway)


@router.post("/razorpay")
async def razorpay_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_razorpay_gateway),
):
    return await _receive(request, session, gateway)
