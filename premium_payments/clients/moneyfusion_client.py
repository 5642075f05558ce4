"""Клиент для проверки статуса платежа MoneyFusion"""
import logging
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError as SchemaError

from premium_payments.clients.http import request_json
from premium_payments.errors import GatewayResponseInvalid, ValidationError
from premium_payments.models.payment import GatewayPayment, MoneyFusionResponse

logger = logging.getLogger(__name__)


class MoneyFusionClient:
    """Запрашивает статус платежа по токену, который вернул checkout MoneyFusion"""

    def __init__(self, session: aiohttp.ClientSession, status_url: str, timeout: float):
        self.session = session
        self.status_url = status_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch_payment(self, reference: str) -> GatewayPayment:
        """
        Получает статус платежа

        Args:
            reference: Токен платежа MoneyFusion

        Returns:
            Нормализованный платеж
        """
        if not reference or not reference.strip():
            raise ValidationError("Token et propertyId requis")

        url = f"{self.status_url}/{quote(reference, safe='')}"
        logger.info(f"🔍 Проверка платежа MoneyFusion: token={reference[:12]}...")
        payload = await request_json(
            self.session, "GET", url,
            service="moneyfusion",
            timeout=self.timeout,
            headers={"Accept": "application/json"}
        )

        try:
            return MoneyFusionResponse.model_validate(payload).to_payment(reference)
        except SchemaError as e:
            logger.error(f"❌ MoneyFusion: неожиданная структура ответа: {e}")
            raise GatewayResponseInvalid(gateway="moneyfusion") from e
