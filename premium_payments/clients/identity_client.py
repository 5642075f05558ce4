"""Определение пользователя по bearer-токену через Supabase Auth"""
import asyncio
import logging

import aiohttp

from premium_payments.errors import GatewayUnavailable, Unauthenticated

logger = logging.getLogger(__name__)


class SupabaseIdentityClient:
    """Проверяет access token пользователя через GET /auth/v1/user"""

    def __init__(self, session: aiohttp.ClientSession, supabase_url: str, service_key: str, timeout: float):
        self.session = session
        self.user_url = f"{supabase_url}/auth/v1/user"
        self.service_key = service_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def resolve_user(self, credential: str) -> str:
        if not credential:
            raise Unauthenticated()

        headers = {
            "Authorization": f"Bearer {credential}",
            "apikey": self.service_key,
        }
        try:
            async with self.session.get(self.user_url, headers=headers, timeout=self.timeout) as response:
                if response.status in (401, 403):
                    logger.warning("❌ Токен пользователя отклонен")
                    raise Unauthenticated()
                if response.status >= 300:
                    logger.error(f"❌ Supabase Auth: HTTP {response.status}")
                    raise GatewayUnavailable("Service d'authentification indisponible", gateway="auth")
                try:
                    user = await response.json(content_type=None)
                except ValueError as e:
                    raise Unauthenticated() from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"❌ Supabase Auth недоступен: {e}")
            raise GatewayUnavailable("Service d'authentification indisponible", gateway="auth") from e

        user_id = user.get("id") if isinstance(user, dict) else None
        if not user_id:
            raise Unauthenticated()
        return str(user_id)
