"""Coin purchases through Razorpay: order creation and signature verification.

Payment rows move ``pending -> completed`` exactly once; nothing in code
drives the ``failed`` state, abandoned orders simply stay pending.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import httpx
from sqlalchemy.orm import Session

from config import settings
from models.payment import Payment
from models.user import User
from services.ledger import credit

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

MIN_ORDER_MINOR_UNITS = 100


@dataclass(frozen=True)
class Plan:
    id: str
    coins: int
    price: int  # major currency units


PLANS: tuple[Plan, ...] = (
    Plan("plan_10", 10, 10),
    Plan("plan_20", 20, 20),
    Plan("plan_50", 50, 50),
    Plan("plan_100", 100, 100),
)

_PLANS_BY_ID = {plan.id: plan for plan in PLANS}


class PaymentError(Exception):
    pass


class InvalidPlanError(PaymentError):
    pass


class PaymentGatewayError(PaymentError):
    pass


class PaymentNotConfiguredError(PaymentGatewayError):
    pass


class PaymentVerificationError(PaymentError):
    pass


class PaymentNotFoundError(PaymentError):
    pass


class PaymentAlreadyProcessedError(PaymentError):
    pass


def find_plan(plan_id: str, coins: int, amount) -> Plan:
    """The (id, coins, price) triple must match an allow-listed plan exactly."""
    plan = _PLANS_BY_ID.get(plan_id)
    if plan is None or plan.coins != coins or plan.price != amount:
        raise InvalidPlanError(plan_id)
    return plan


def to_minor_units(price) -> int:
    return int(Decimal(str(price)) * 100)


class RazorpayGateway:
    """Minimal Razorpay Orders API client."""

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self._key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url
        self._http = http_client

    @property
    def key_id(self) -> str:
        return self._key_id if self._key_id is not None else settings.RAZORPAY_KEY_ID

    @property
    def key_secret(self) -> str:
        return self._key_secret if self._key_secret is not None else settings.RAZORPAY_KEY_SECRET

    @property
    def base_url(self) -> str:
        return (self._base_url or settings.RAZORPAY_BASE_URL).rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount_minor: int, receipt: str, notes: dict | None = None) -> dict:
        if not self.configured:
            raise PaymentNotConfiguredError("Payment system disabled - no credentials loaded")
        if amount_minor < MIN_ORDER_MINOR_UNITS:
            raise PaymentGatewayError(f"Amount must be at least {MIN_ORDER_MINOR_UNITS} minor units")

        payload = {
            "amount": amount_minor,
            "currency": settings.PAYMENT_CURRENCY,
            "receipt": receipt,
            "payment_capture": 1,
            "notes": notes or {},
        }
        url = f"{self.base_url}/orders"
        auth = (self.key_id, self.key_secret)
        try:
            if self._http is not None:
                resp = self._http.post(url, json=payload, auth=auth)
            else:
                resp = httpx.post(url, json=payload, auth=auth, timeout=settings.EXTERNAL_TIMEOUT_SECONDS)
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"Order request failed: {exc}") from exc

        if resp.status_code >= 400:
            if resp.status_code == 401:
                logger.error("Razorpay rejected credentials for key %s...", self.key_id[:12])
            raise PaymentGatewayError(f"Razorpay error {resp.status_code}: {resp.text[:400]}")

        order = resp.json()
        logger.info("Created Razorpay order %s for %s minor units", order.get("id"), order.get("amount"))
        return order

    def signature_for(self, order_id: str, payment_id: str) -> str:
        return hmac.new(
            self.key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not (order_id and payment_id and signature) or not self.key_secret:
            return False
        return hmac.compare_digest(self.signature_for(order_id, payment_id), signature)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_purchase(
    db: Session,
    user: User,
    gateway: RazorpayGateway,
    plan_id: str,
    coins: int,
    amount,
) -> tuple[dict, Payment]:
    """Open a gateway order for an allow-listed plan and record it as pending."""
    plan = find_plan(plan_id, coins, amount)
    receipt = f"user_{user.id}_coins_{plan.coins}_{int(time.time() * 1000)}"
    order = gateway.create_order(
        to_minor_units(plan.price),
        receipt,
        notes={"purpose": "Companion coins purchase", "coins": str(plan.coins)},
    )

    payment = Payment(
        user_id=user.id,
        amount=Decimal(plan.price),
        coins=plan.coins,
        gateway_order_id=order["id"],
        status=STATUS_PENDING,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return order, payment


def complete_purchase(
    db: Session,
    user: User,
    gateway: RazorpayGateway,
    order_id: str,
    payment_id: str,
    signature: str,
) -> Payment:
    """Verify the checkout signature and credit the plan's coins exactly once."""
    if not gateway.verify_signature(order_id, payment_id, signature):
        logger.warning("Payment signature mismatch for order %s", order_id)
        raise PaymentVerificationError(order_id)

    payment = (
        db.query(Payment)
        .filter(Payment.gateway_order_id == order_id, Payment.user_id == user.id)
        .first()
    )
    if payment is None:
        raise PaymentNotFoundError(order_id)
    if payment.status == STATUS_COMPLETED:
        raise PaymentAlreadyProcessedError(order_id)

    payment.status = STATUS_COMPLETED
    payment.gateway_payment_id = payment_id
    payment.completed_at = _utcnow()
    credit(db, user, payment.coins, commit=False)
    db.commit()
    logger.info("Payment %s verified for %s: added %d coins", order_id, user.username, payment.coins)
    return payment


_gateway: RazorpayGateway | None = None


def get_payment_gateway() -> RazorpayGateway:
    """Get or create the gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = RazorpayGateway()
    return _gateway
