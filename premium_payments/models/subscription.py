from datetime import datetime
from decimal import Decimal
from typing import Optional, TypedDict


class InvoiceSnapshot(TypedDict):
    """Снимок данных для квитанции на момент активации"""
    propertyTitle: str
    propertyLocation: str
    customerName: str
    customerPhone: str
    plan: str
    amount: int
    currency: str
    paymentRef: str
    paymentMethod: str
    paidAt: str


class SubscriptionRecord(TypedDict):
    """Запись подписки из базы данных"""
    payment_ref: str
    user_id: str
    property_id: str
    plan: str  # monthly, yearly
    amount: Optional[Decimal]
    status: str  # pending, active, expired
    starts_at: Optional[datetime]
    expires_at: Optional[datetime]
    updated_at: Optional[datetime]


class CustomField(TypedDict):
    """Метаданные, которые мы передаем PayTech при checkout и получаем обратно в IPN"""
    propertyId: str
    userId: str
    plan: str
    expectedAmount: int


class Activation(TypedDict):
    """Что нужно записать при активации премиума"""
    payment_ref: str
    property_id: str
    user_id: str
    plan: str
    amount: int
    starts_at: datetime
    expires_at: datetime
    invoice: InvoiceSnapshot
    create_if_missing: bool  # pull-поток сам создает запись подписки


class ActivationResult(TypedDict):
    expires_at: datetime
    already_active: bool
