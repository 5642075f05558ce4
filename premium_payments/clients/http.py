"""Общий HTTP-вызов к внешним API с разделением ошибок сети и ошибок формата"""
import asyncio
import logging
from typing import Any

import aiohttp

from premium_payments.errors import GatewayResponseInvalid, GatewayUnavailable

logger = logging.getLogger(__name__)


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    service: str,
    timeout: aiohttp.ClientTimeout,
    **kwargs: Any
) -> Any:
    """
    Выполняет запрос и возвращает разобранный JSON

    Raises:
        GatewayUnavailable: сетевая ошибка, таймаут или статус не 2xx
        GatewayResponseInvalid: тело ответа не является JSON
    """
    try:
        async with session.request(method, url, timeout=timeout, **kwargs) as response:
            if response.status >= 300:
                body = await response.text()
                logger.error(f"❌ {service}: HTTP {response.status} от {url}: {body[:200]}")
                raise GatewayUnavailable(gateway=service)
            try:
                return await response.json(content_type=None)
            except ValueError as e:
                logger.error(f"❌ {service}: нераспознанный ответ от {url}: {e}")
                raise GatewayResponseInvalid(gateway=service) from e
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"❌ {service}: недоступен ({type(e).__name__}: {e})")
        raise GatewayUnavailable(gateway=service) from e
