"""Admin schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from schemas.base import CamelModel


class AdminLoginRequest(CamelModel):
    username: str = ""
    password: str = ""


class AdminUserOut(CamelModel):
    id: int
    username: str
    coins: int
    total_messages: int
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    is_paid: bool
    payment_count: int


class DailyLogins(CamelModel):
    new_users: int
    returning_users: int


class AnalyticsOut(CamelModel):
    total_users: int
    total_paid_users: int
    total_free_users: int
    registered_but_no_messages: int
    partial_free_messages: int
    completed_free_no_payment: int
    average_messages_per_user: float
    conversion_rate: float
    daily_signups: int
    weekly_signups: int
    monthly_signups: int
    daily_logins: DailyLogins


class AddCoinsRequest(CamelModel):
    user_id: int
    coins: int = Field(gt=0)


class AddCoinsResponse(CamelModel):
    success: bool = True
    old_coins: int
    new_coins: int
    added: int


class ApiKeyUpdateRequest(CamelModel):
    api_key: str = ""
