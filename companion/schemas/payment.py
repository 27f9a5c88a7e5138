"""Payment schemas."""

from __future__ import annotations

from pydantic import BaseModel

from schemas.base import CamelModel


class PaymentCreateRequest(CamelModel):
    plan_id: str = ""
    coins: int = 0
    amount: float = 0


class PaymentCreateResponse(CamelModel):
    order_id: str
    amount: int
    currency: str
    key_id: str
    payment_id: str
    coins: int


class PaymentVerifyRequest(BaseModel):
    # Field names are fixed by the Razorpay checkout callback.
    razorpay_payment_id: str = ""
    razorpay_order_id: str = ""
    razorpay_signature: str = ""


class PaymentVerifyResponse(CamelModel):
    success: bool = True
    message: str
    coins_added: int
    new_balance: int
    order_id: str
    payment_id: str
