"""Клиент для работы с PayTech"""
import json
import logging
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError as SchemaError

from premium_payments.clients.http import request_json
from premium_payments.errors import GatewayResponseInvalid, ValidationError
from premium_payments.models.payment import GatewayPayment, PayTechCheckout, PayTechStatusResponse
from premium_payments.models.subscription import CustomField

logger = logging.getLogger(__name__)


class PayTechClient:
    """Клиент для создания платежей и проверки их статуса в PayTech"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float,
        env: str = "prod"
    ):
        self.session = session
        self.base_url = base_url
        self.env = env
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {
            "Accept": "application/json",
            "API_KEY": api_key,
            "API_SECRET": api_secret,
        }

    async def fetch_payment(self, reference: str) -> GatewayPayment:
        """
        Проверяет статус платежа по ref_command

        Args:
            reference: ref_command, выбранный нами при checkout

        Returns:
            Нормализованный платеж
        """
        if not reference or not reference.strip():
            raise ValidationError("Référence de commande manquante")

        url = f"{self.base_url}/payment/verify/{quote(reference, safe='')}"
        logger.info(f"🔍 Проверка платежа PayTech: ref={reference}")
        payload = await request_json(
            self.session, "GET", url,
            service="paytech",
            timeout=self.timeout,
            headers=self._headers
        )

        try:
            return PayTechStatusResponse.model_validate(payload).to_payment(reference)
        except SchemaError as e:
            logger.error(f"❌ PayTech: неожиданная структура ответа: {e}")
            raise GatewayResponseInvalid(gateway="paytech") from e

    async def request_payment(
        self,
        *,
        item_name: str,
        item_price: int,
        currency: str,
        ref_command: str,
        command_name: str,
        ipn_url: str,
        success_url: str,
        cancel_url: str,
        custom_field: CustomField
    ) -> PayTechCheckout:
        """
        Создает платеж и возвращает токен и ссылку на оплату

        custom_field PayTech вернет в IPN без изменений
        """
        body = {
            "item_name": item_name,
            "item_price": item_price,
            "currency": currency,
            "ref_command": ref_command,
            "command_name": command_name,
            "env": self.env,
            "ipn_url": ipn_url,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "custom_field": json.dumps(custom_field),
        }
        logger.info(f"🚀 Создание платежа PayTech: ref={ref_command}, сумма={item_price} {currency}")
        payload = await request_json(
            self.session, "POST", f"{self.base_url}/payment/request-payment",
            service="paytech",
            timeout=self.timeout,
            headers={**self._headers, "Content-Type": "application/json"},
            json=body
        )

        try:
            return PayTechCheckout.model_validate(payload)
        except SchemaError as e:
            logger.error(f"❌ PayTech: ответ без token/redirect_url: {e}")
            raise GatewayResponseInvalid(gateway="paytech") from e
