import asyncio
import logging

import aiohttp
import asyncpg
from aiohttp import web

from premium_payments.config import Config, setup_logging
from premium_payments.db.pool import init_pool, close_pool
from premium_payments.clients.identity_client import SupabaseIdentityClient
from premium_payments.clients.moneyfusion_client import MoneyFusionClient
from premium_payments.clients.paytech_client import PayTechClient
from premium_payments.db.repositories.entitlements import EntitlementRepository
from premium_payments.db.repositories.listings import ListingRepository, ProfileRepository
from premium_payments.db.repositories.subscriptions import SubscriptionRepository
from premium_payments.services.authorization import AuthorizationService
from premium_payments.services.entitlements import EntitlementService
from premium_payments.services.moneyfusion_payments import ReportPaymentService
from premium_payments.services.paytech_payments import SubscriptionPaymentService
from premium_payments.web.app import create_app

logger = logging.getLogger(__name__)


def build_app(config: Config, session: aiohttp.ClientSession, pool: asyncpg.Pool) -> web.Application:
    """Собирает сервисы на реальных клиентах и репозиториях"""
    timeout = config.gateway_timeout_seconds
    listings = ListingRepository(pool)
    profiles = ProfileRepository(pool)
    identity = SupabaseIdentityClient(session, config.supabase_url, config.supabase_service_key, timeout)
    authorization = AuthorizationService(identity, listings)
    entitlements = EntitlementService(EntitlementRepository(pool))

    report_payments = ReportPaymentService(
        MoneyFusionClient(session, config.moneyfusion_status_url, timeout),
        authorization,
        entitlements,
        profiles
    )
    subscription_payments = SubscriptionPaymentService(
        PayTechClient(
            session,
            config.paytech_base_url,
            config.paytech_api_key,
            config.paytech_secret_key,
            timeout,
            env=config.paytech_env
        ),
        authorization,
        entitlements,
        SubscriptionRepository(pool),
        listings,
        profiles,
        ipn_url=config.ipn_url,
        redirect_url=config.redirect_url
    )
    return create_app(config, report_payments, subscription_payments)


async def main():
    """Главная функция запуска сервиса"""
    config = Config.from_env()
    setup_logging(config.log_level)
    logger.info("🚀 Запуск сервиса верификации платежей...")

    # Инициализация базы данных
    pool = await init_pool(config.database_url)
    session = aiohttp.ClientSession()
    runner = None

    try:
        runner = web.AppRunner(build_app(config, session, pool))
        await runner.setup()
        site = web.TCPSite(runner, config.host, config.port)
        await site.start()

        logger.info(f"✅ Сервис слушает {config.host}:{config.port}")
        logger.info(f"🔗 IPN URL: {config.ipn_url}")

        await asyncio.Event().wait()
    finally:
        # Очистка ресурсов
        if runner is not None:
            await runner.cleanup()
        await session.close()
        await close_pool()
        logger.info("👋 Сервис остановлен")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
