from datetime import datetime
from decimal import Decimal
from typing import Optional, TypedDict


class ListingRecord(TypedDict):
    """Объявление из таблицы properties"""
    id: str
    user_id: str  # владелец
    title: Optional[str]
    price: Optional[Decimal]
    city: Optional[str]
    location: Optional[str]
    is_premium: bool
    premium_expires_at: Optional[datetime]


class ProfileRecord(TypedDict):
    """Профиль пользователя (для квитанции)"""
    id: str
    full_name: Optional[str]
    phone: Optional[str]
