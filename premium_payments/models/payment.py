"""Модели ответов платежных шлюзов и нормализованного платежа"""
import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from premium_payments.constants import MONEYFUSION_PAID_STATUS, PAYTECH_SUCCESS_STATUS

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class PaymentStatus(str, Enum):
    """Статус платежа, как его видит шлюз"""
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"
    UNKNOWN = "unknown"


class GatewayPayment(BaseModel):
    """Нормализованный ответ шлюза: одинаковая форма для MoneyFusion и PayTech"""
    gateway: str
    reference: str
    success: bool
    status: PaymentStatus
    raw_status: str
    amount: int
    method: Optional[str] = None
    transaction: Optional[str] = None

    @property
    def is_settled(self) -> bool:
        return self.success and self.status is PaymentStatus.PAID


def parse_amount(value: Any) -> int:
    """
    Приводит сумму из ответа шлюза к целому числу

    Нераспознанная сумма становится 0, а не "неизвестно":
    ошибка парсинга никогда не проходит проверку минимальной суммы.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class MoneyFusionData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: Any = Field(default=None, alias="statut")
    amount: Any = Field(default=None, alias="Montant")
    transaction: Any = Field(default=None, alias="numeroTransaction")
    method: Any = Field(default=None, alias="moyen")


class MoneyFusionResponse(BaseModel):
    """Ответ GET /paiementNotif/{token}"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    success: Any = Field(default=None, alias="statut")
    data: Optional[MoneyFusionData] = None

    def to_payment(self, token: str) -> GatewayPayment:
        data = self.data or MoneyFusionData()
        raw_status = _as_text(data.status) or "unknown"
        status = {
            MONEYFUSION_PAID_STATUS: PaymentStatus.PAID,
            "pending": PaymentStatus.PENDING,
            "failure": PaymentStatus.FAILED,
            "failed": PaymentStatus.FAILED,
            "no paid": PaymentStatus.FAILED,
        }.get(raw_status, PaymentStatus.UNKNOWN)

        return GatewayPayment(
            gateway="moneyfusion",
            reference=token,
            success=self.success is True,
            status=status,
            raw_status=raw_status,
            amount=parse_amount(data.amount),
            method=_as_text(data.method),
            transaction=_as_text(data.transaction),
        )


class PayTechStatusResponse(BaseModel):
    """Ответ GET /payment/verify/{ref_command}"""
    model_config = ConfigDict(extra="allow")

    status: Any = None
    amount: Any = None
    item_price: Any = None
    payment_method: Any = None
    transaction_id: Any = None

    def to_payment(self, ref_command: str) -> GatewayPayment:
        raw_status = _as_text(self.status) or "unknown"
        status = {
            PAYTECH_SUCCESS_STATUS: PaymentStatus.PAID,
            "pending": PaymentStatus.PENDING,
            "failed": PaymentStatus.FAILED,
            "cancelled": PaymentStatus.FAILED,
            "canceled": PaymentStatus.FAILED,
        }.get(raw_status, PaymentStatus.UNKNOWN)
        paid = self.amount if self.amount not in (None, "", 0) else self.item_price

        return GatewayPayment(
            gateway="paytech",
            reference=ref_command,
            success=raw_status == PAYTECH_SUCCESS_STATUS,
            status=status,
            raw_status=raw_status,
            amount=parse_amount(paid),
            method=_as_text(self.payment_method),
            transaction=_as_text(self.transaction_id),
        )


class PayTechCheckout(BaseModel):
    """Ответ POST /payment/request-payment"""
    model_config = ConfigDict(extra="allow")

    token: str = Field(..., min_length=1)
    redirect_url: str = Field(..., min_length=1)
