"""Репозиторий для работы с подписками"""
import logging
import uuid
from decimal import Decimal
from typing import Optional

import asyncpg

from premium_payments.db.pool import DATABASE_ERRORS
from premium_payments.errors import PersistenceFailure
from premium_payments.models.subscription import SubscriptionRecord

logger = logging.getLogger(__name__)

SUBSCRIPTION_COLUMNS = """
    payment_ref, user_id, property_id, plan, amount, status, starts_at, expires_at, updated_at
"""


def row_to_subscription(row: asyncpg.Record) -> SubscriptionRecord:
    record = dict(row)
    record['user_id'] = str(record['user_id'])
    record['property_id'] = str(record['property_id'])
    return record  # type: ignore


class SubscriptionRepository:
    """Репозиторий для работы с подписками в БД"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_by_reference(self, payment_ref: str) -> Optional[SubscriptionRecord]:
        """Получить подписку по merchant reference (ref_command)"""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {SUBSCRIPTION_COLUMNS} FROM subscriptions WHERE payment_ref = $1",
                    payment_ref
                )
        except DATABASE_ERRORS as e:
            logger.error(f"❌ Ошибка чтения подписки {payment_ref}: {e}")
            raise PersistenceFailure() from e
        return row_to_subscription(row) if row else None

    async def create_pending(
        self,
        user_id: str,
        property_id: str,
        plan: str,
        amount: Decimal,
        currency: str,
        payment_token: str,
        payment_ref: str
    ) -> None:
        """
        Создать подписку в статусе pending при checkout

        Args:
            user_id: ID владельца объявления
            property_id: ID объявления
            plan: monthly или yearly
            amount: Сумма по тарифу
            currency: Валюта checkout
            payment_token: Токен, выданный шлюзом
            payment_ref: Наш ref_command
        """
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO subscriptions
                        (user_id, property_id, subscription_type, plan, amount, currency,
                         status, payment_token, payment_ref)
                    VALUES ($1, $2, 'premium', $3, $4, $5, 'pending', $6, $7)
                    """,
                    uuid.UUID(user_id), uuid.UUID(property_id), plan, amount, currency,
                    payment_token, payment_ref
                )
        except DATABASE_ERRORS as e:
            logger.error(f"❌ Не удалось создать подписку {payment_ref}: {e}")
            raise PersistenceFailure() from e
