import logging

from aiohttp import web

from premium_payments.constants import CORS_HEADERS
from premium_payments.errors import GatewayResponseInvalid, GatewayUnavailable, PaymentError

logger = logging.getLogger(__name__)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Добавляет CORS заголовки ко всем ответам, включая ошибки"""
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Превращает PaymentError в JSON-ответ {error, ...диагностика}"""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except (GatewayUnavailable, GatewayResponseInvalid) as e:
        logger.error(f"🔌 {request.path}: сбой внешнего сервиса {type(e).__name__} {e.details}")
        return web.json_response(e.to_dict(), status=e.status)
    except PaymentError as e:
        logger.warning(f"❌ {request.path}: {type(e).__name__} ({e.status}) {e.details}")
        return web.json_response(e.to_dict(), status=e.status)
    except Exception:
        logger.exception(f"💥 Необработанная ошибка на {request.path}")
        return web.json_response({'error': 'Erreur inconnue'}, status=500)
