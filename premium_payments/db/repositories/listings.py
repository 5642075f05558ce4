"""Репозиторий для чтения объявлений и профилей"""
import logging
import uuid
from typing import Optional

import asyncpg

from premium_payments.db.pool import DATABASE_ERRORS
from premium_payments.errors import PersistenceFailure
from premium_payments.models.listing import ListingRecord, ProfileRecord
from premium_payments.utils.ids import normalize_uuid

logger = logging.getLogger(__name__)


class ListingRepository:
    """Репозиторий для работы с объявлениями (таблица properties)"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_listing(self, listing_id: str) -> Optional[ListingRecord]:
        """Получить объявление по ID (None, если нет или ID не UUID)"""
        if normalize_uuid(listing_id) is None:
            return None

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT id, user_id, title, price, city, location, is_premium, premium_expires_at
                    FROM properties
                    WHERE id = $1
                    """,
                    uuid.UUID(listing_id)
                )
        except DATABASE_ERRORS as e:
            logger.error(f"❌ Ошибка чтения объявления {listing_id}: {e}")
            raise PersistenceFailure() from e

        if not row:
            return None
        listing = dict(row)
        listing['id'] = str(listing['id'])
        listing['user_id'] = str(listing['user_id'])
        return listing  # type: ignore


class ProfileRepository:
    """Репозиторий для профилей пользователей"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        """Получить профиль по ID пользователя"""
        if normalize_uuid(user_id) is None:
            return None

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, full_name, phone FROM profiles WHERE id = $1",
                    uuid.UUID(user_id)
                )
        except DATABASE_ERRORS as e:
            logger.error(f"❌ Ошибка чтения профиля {user_id}: {e}")
            raise PersistenceFailure() from e

        if not row:
            return None
        profile = dict(row)
        profile['id'] = str(profile['id'])
        return profile  # type: ignore
