"""Атомарная активация премиума: подписка + объявление в одной транзакции"""
import json
import logging
import uuid
from datetime import datetime, timezone

import asyncpg

from premium_payments.constants import CHECKOUT_CURRENCY
from premium_payments.db.pool import DATABASE_ERRORS
from premium_payments.errors import NotFoundOrUnauthorized, PersistenceFailure
from premium_payments.models.subscription import Activation, ActivationResult
from premium_payments.utils.ids import same_uuid

logger = logging.getLogger(__name__)


class EntitlementRepository:
    """Записывает результат успешной верификации платежа"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def activate(self, activation: Activation) -> ActivationResult:
        """
        Переводит подписку pending -> active и включает премиум у объявления

        Строка подписки блокируется (FOR UPDATE), поэтому параллельные IPN
        с одним ref_command не продлевают срок дважды: второй увидит active
        и вернет уже записанный expires_at.
        """
        ref = activation['payment_ref']
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    if activation['create_if_missing']:
                        await self._insert_pending(conn, activation)

                    row = await conn.fetchrow(
                        """
                        SELECT status, expires_at, property_id, user_id
                        FROM subscriptions
                        WHERE payment_ref = $1
                        FOR UPDATE
                        """,
                        ref
                    )
                    if not row:
                        logger.error(f"❌ Подписка {ref} не найдена")
                        raise NotFoundOrUnauthorized()

                    # Токен или ref_command привязан к одному объявлению и одному пользователю
                    if not same_uuid(row['property_id'], activation['property_id']) or \
                            not same_uuid(row['user_id'], activation['user_id']):
                        logger.error(f"❌ Подписка {ref} принадлежит другому объявлению или пользователю")
                        raise NotFoundOrUnauthorized()

                    if row['status'] == 'pending':
                        await conn.execute(
                            """
                            UPDATE subscriptions
                            SET status = 'active', starts_at = $2, expires_at = $3,
                                invoice_data = $4::jsonb, updated_at = $2
                            WHERE payment_ref = $1 AND status = 'pending'
                            """,
                            ref, activation['starts_at'], activation['expires_at'],
                            json.dumps(activation['invoice'])
                        )
                        expires_at = activation['expires_at']
                        already_active = False
                    else:
                        logger.info(f"⚠️ Подписка {ref} уже в статусе {row['status']}, срок не продлевается")
                        expires_at = row['expires_at']
                        already_active = True

                    if row['status'] == 'expired' or not expires_at or expires_at <= datetime.now(timezone.utc):
                        return {'expires_at': expires_at, 'already_active': already_active}

                    # GREATEST: не укорачиваем премиум, выданный другой подпиской
                    result = await conn.execute(
                        """
                        UPDATE properties
                        SET is_premium = true,
                            premium_expires_at = GREATEST(COALESCE(premium_expires_at, $2), $2)
                        WHERE id = $1
                        """,
                        uuid.UUID(str(row['property_id'])), expires_at
                    )
                    if result == "UPDATE 0":
                        logger.error(f"❌ Объявление {activation['property_id']} не найдено")
                        raise NotFoundOrUnauthorized()
        except DATABASE_ERRORS as e:
            logger.error(f"❌ Ошибка активации подписки {ref}: {e}")
            raise PersistenceFailure() from e

        return {'expires_at': expires_at, 'already_active': already_active}

    @staticmethod
    async def _insert_pending(conn: asyncpg.Connection, activation: Activation) -> None:
        """Создает запись подписки для pull-потока (токен = payment_ref)"""
        await conn.execute(
            """
            INSERT INTO subscriptions
                (user_id, property_id, subscription_type, plan, amount, currency,
                 status, payment_token, payment_ref)
            VALUES ($1, $2, 'premium', $3, $4, $5, 'pending', $6, $6)
            ON CONFLICT (payment_ref) DO NOTHING
            """,
            uuid.UUID(activation['user_id']), uuid.UUID(activation['property_id']),
            activation['plan'], activation['amount'], CHECKOUT_CURRENCY,
            activation['payment_ref']
        )
