"""Сборка aiohttp приложения"""
from aiohttp import web

from premium_payments.config import Config
from premium_payments.services.moneyfusion_payments import ReportPaymentService
from premium_payments.services.paytech_payments import SubscriptionPaymentService
from premium_payments.web import handlers
from premium_payments.web.middlewares import cors_middleware, error_middleware

MONEYFUSION_VERIFY_PATH = '/payments/moneyfusion/verify'
PAYTECH_IPN_PATH = '/payments/paytech/ipn'
PAYTECH_INITIATE_PATH = '/payments/paytech/initiate'


def create_app(
    config: Config,
    report_payments: ReportPaymentService,
    subscription_payments: SubscriptionPaymentService
) -> web.Application:
    """Создает aiohttp приложение с маршрутами верификации платежей"""
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app['config'] = config
    app['report_payments'] = report_payments
    app['subscription_payments'] = subscription_payments

    app.router.add_post(MONEYFUSION_VERIFY_PATH, handlers.handle_moneyfusion_verify)
    app.router.add_post(PAYTECH_IPN_PATH, handlers.handle_paytech_ipn)
    app.router.add_post(PAYTECH_INITIATE_PATH, handlers.handle_paytech_initiate)
    for path in (MONEYFUSION_VERIFY_PATH, PAYTECH_IPN_PATH, PAYTECH_INITIATE_PATH):
        app.router.add_route('OPTIONS', path, handlers.handle_preflight)
    app.router.add_get('/health', handlers.handle_health)

    return app
