"""Per-user coin balance: one coin per accepted message, credits on purchase."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from models.user import User

logger = logging.getLogger(__name__)

MESSAGE_COST = 1


class InsufficientCoinsError(Exception):
    def __init__(self, balance: int):
        super().__init__(f"Insufficient coins (balance={balance})")
        self.balance = balance


def ensure_can_spend(user: User, cost: int = MESSAGE_COST) -> None:
    if user.coins < cost:
        raise InsufficientCoinsError(user.coins)


def debit_message(db: Session, user: User) -> int:
    """Charge one message. Read-check-write, not atomic across requests."""
    ensure_can_spend(user)
    user.coins = user.coins - MESSAGE_COST
    db.commit()
    logger.info("Debited %d coin from user %s, balance=%d", MESSAGE_COST, user.id, user.coins)
    return user.coins


def credit(db: Session, user: User, coins: int, *, commit: bool = True) -> int:
    if coins <= 0:
        raise ValueError("Credited coins must be positive")
    user.coins = user.coins + coins
    if commit:
        db.commit()
    logger.info("Credited %d coins to user %s, balance=%d", coins, user.id, user.coins)
    return user.coins
