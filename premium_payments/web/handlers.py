"""HTTP-обработчики верификации платежей"""
import json
import logging
from typing import Any, Optional

from aiohttp import web

from premium_payments.config import Config
from premium_payments.errors import Forbidden, ValidationError
from premium_payments.services.moneyfusion_payments import ReportPaymentService
from premium_payments.services.paytech_payments import SubscriptionPaymentService
from premium_payments.utils.crypto import verify_signature

logger = logging.getLogger(__name__)


def parse_json(raw: bytes) -> dict:
    try:
        body = json.loads(raw or b"null")
    except ValueError as e:
        raise ValidationError("Requête invalide") from e
    if not isinstance(body, dict):
        raise ValidationError("Requête invalide")
    return body


def client_ip(request: web.Request) -> Optional[str]:
    """IP клиента: первый адрес X-Forwarded-For, затем X-Real-IP, затем адрес соединения"""
    forwarded = request.headers.get('X-Forwarded-For', '')
    first = forwarded.split(',')[0].strip()
    return first or request.headers.get('X-Real-IP') or request.remote


async def handle_preflight(request: web.Request) -> web.Response:
    return web.Response(status=200, content_type='application/json')


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({'status': 'ok'})


async def handle_moneyfusion_verify(request: web.Request) -> web.Response:
    """
    Pull-верификация MoneyFusion

    Тело: {token, propertyId}, заголовок Authorization: Bearer <jwt>
    """
    body = parse_json(await request.read())
    service: ReportPaymentService = request.app['report_payments']
    result = await service.verify(
        request.headers.get('Authorization'),
        body.get('token'),
        body.get('propertyId')
    )
    return web.json_response(result)


async def handle_paytech_initiate(request: web.Request) -> web.Response:
    """Создание платежа PayTech: тело {propertyId, plan}"""
    body = parse_json(await request.read())
    service: SubscriptionPaymentService = request.app['subscription_payments']
    result = await service.initiate(
        request.headers.get('Authorization'),
        body.get('propertyId'),
        body.get('plan') or 'monthly'
    )
    return web.json_response(result)


async def handle_paytech_ipn(request: web.Request) -> web.Response:
    """
    IPN от PayTech (server-to-server, без пользовательской сессии)

    Источник проверяется по белому списку IP и HMAC-подписи тела,
    затем платеж перепроверяется через API PayTech.
    """
    config: Config = request.app['config']

    ip = client_ip(request)
    logger.info(f"🔍 IPN запрос с IP: {ip}")
    if config.paytech_allowed_ips and ip and ip not in config.paytech_allowed_ips:
        logger.error(f"❌ IPN с неразрешенного IP: {ip}")
        raise Forbidden()

    raw = await request.read()
    if config.paytech_require_signature:
        signature = request.headers.get('x-paytech-signature') or request.headers.get('signature')
        if not verify_signature(raw, signature, config.paytech_secret_key):
            logger.error("❌ Неверная подпись IPN")
            raise Forbidden("Signature invalide")
        logger.info("✅ Подпись IPN проверена")

    body: Any = parse_json(raw)
    service: SubscriptionPaymentService = request.app['subscription_payments']
    result = await service.handle_ipn(body)
    return web.json_response(result)
