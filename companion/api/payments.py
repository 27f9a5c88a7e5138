"""Coin purchase endpoints (Razorpay checkout)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api._helpers import bad_request
from auth import get_current_user
from config import settings
from database import get_db
from models.user import User
from schemas.payment import (
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from services.payments import (
    InvalidPlanError,
    PaymentAlreadyProcessedError,
    PaymentGatewayError,
    PaymentNotConfiguredError,
    PaymentNotFoundError,
    PaymentVerificationError,
    RazorpayGateway,
    complete_purchase,
    create_purchase,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create", response_model=PaymentCreateResponse)
def create_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    try:
        order, payment = create_purchase(db, user, gateway, payload.plan_id, payload.coins, payload.amount)
    except InvalidPlanError:
        raise bad_request("Invalid payment plan")
    except PaymentNotConfiguredError:
        logger.error("Payment requested by user %s but Razorpay is not configured", user.id)
        raise HTTPException(status_code=503, detail="Payment system is not configured")
    except PaymentGatewayError:
        logger.exception("Order creation failed for user %s", user.id)
        raise HTTPException(status_code=502, detail="Failed to create payment")

    return PaymentCreateResponse(
        order_id=order["id"],
        amount=order.get("amount", 0),
        currency=order.get("currency", settings.PAYMENT_CURRENCY),
        key_id=gateway.key_id,
        payment_id=order["id"],
        coins=payment.coins,
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
@router.post("/complete", response_model=PaymentVerifyResponse)
def verify_payment(
    payload: PaymentVerifyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    order_id = payload.razorpay_order_id
    payment_id = payload.razorpay_payment_id
    if not (order_id and payment_id and payload.razorpay_signature):
        raise bad_request("Missing payment details")

    try:
        payment = complete_purchase(db, user, gateway, order_id, payment_id, payload.razorpay_signature)
    except PaymentVerificationError:
        raise bad_request("Payment verification failed")
    except PaymentNotFoundError:
        raise HTTPException(status_code=404, detail="Payment not found")
    except PaymentAlreadyProcessedError:
        raise bad_request("Payment already processed")

    return PaymentVerifyResponse(
        message=f"Payment successful! {payment.coins} coins added.",
        coins_added=payment.coins,
        new_balance=user.coins,
        order_id=order_id,
        payment_id=payment_id,
    )
