"""Admin reporting: user list and signup/conversion funnel."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from models.conversation import Conversation, Message
from models.payment import Payment
from models.user import User
from services.payments import STATUS_COMPLETED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _sent_message_counts(db: Session) -> dict[int, int]:
    """user_id -> number of messages the user sent (assistant replies excluded)."""
    rows = (
        db.query(Conversation.user_id, func.count(Message.id))
        .join(Message, Message.conversation_id == Conversation.id)
        .filter(Message.sender == "user")
        .group_by(Conversation.user_id)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def _completed_payment_counts(db: Session) -> dict[int, int]:
    rows = (
        db.query(Payment.user_id, func.count(Payment.id))
        .filter(Payment.status == STATUS_COMPLETED)
        .group_by(Payment.user_id)
        .all()
    )
    return {user_id: count for user_id, count in rows}


def detailed_user_list(db: Session) -> list[dict]:
    sent = _sent_message_counts(db)
    paid = _completed_payment_counts(db)
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [
        {
            "id": user.id,
            "username": user.username,
            "coins": user.coins,
            "total_messages": sent.get(user.id, 0),
            "last_login_at": user.last_login_at,
            "created_at": user.created_at,
            "is_paid": paid.get(user.id, 0) > 0,
            "payment_count": paid.get(user.id, 0),
        }
        for user in users
    ]


def user_analytics(db: Session, now: datetime | None = None) -> dict:
    now = now or _utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_ago = now - timedelta(hours=24)
    free_quota = settings.DEFAULT_COINS

    sent = _sent_message_counts(db)
    paid_ids = set(_completed_payment_counts(db))
    users = db.query(User.id, User.created_at, User.last_login_at).all()

    total_users = len(users)
    total_paid = sum(1 for u in users if u.id in paid_ids)
    no_messages = sum(1 for u in users if sent.get(u.id, 0) == 0)
    partial_free = sum(
        1 for u in users if u.id not in paid_ids and 0 < sent.get(u.id, 0) < free_quota
    )
    completed_free = sum(
        1 for u in users if u.id not in paid_ids and sent.get(u.id, 0) >= free_quota
    )
    total_sent = sum(sent.values())

    def _signed_up_since(cutoff: datetime) -> int:
        return sum(1 for u in users if u.created_at and u.created_at >= cutoff)

    returning = sum(
        1 for u in users
        if u.last_login_at and u.last_login_at >= day_ago and u.created_at and u.created_at < day_ago
    )

    return {
        "total_users": total_users,
        "total_paid_users": total_paid,
        "total_free_users": total_users - total_paid,
        "registered_but_no_messages": no_messages,
        "partial_free_messages": partial_free,
        "completed_free_no_payment": completed_free,
        "average_messages_per_user": round(total_sent / total_users, 2) if total_users else 0.0,
        "conversion_rate": round(total_paid / total_users * 100, 2) if total_users else 0.0,
        "daily_signups": _signed_up_since(today),
        "weekly_signups": _signed_up_since(today - timedelta(days=7)),
        "monthly_signups": _signed_up_since(today - timedelta(days=30)),
        "daily_logins": {
            "new_users": _signed_up_since(day_ago),
            "returning_users": returning,
        },
    }
