import logging
from typing import Optional

from premium_payments.errors import NotFoundOrUnauthorized, Unauthenticated
from premium_payments.models.listing import ListingRecord
from premium_payments.ports import IdentityVerifier, ListingReader
from premium_payments.utils.ids import same_uuid

logger = logging.getLogger(__name__)


def extract_bearer(header: Optional[str]) -> str:
    """Достает токен из заголовка Authorization: Bearer <token>"""
    if not header:
        raise Unauthenticated()
    scheme, _, credential = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        raise Unauthenticated()
    return credential.strip()


class AuthorizationService:
    """Проверяет, что вызывающий пользователь владеет объявлением"""

    def __init__(self, identity: IdentityVerifier, listings: ListingReader):
        self.identity = identity
        self.listings = listings

    async def authenticate(self, auth_header: Optional[str]) -> str:
        return await self.identity.resolve_user(extract_bearer(auth_header))

    async def authorize_owner(self, auth_header: Optional[str], listing_id: str) -> tuple[str, ListingRecord]:
        """
        Возвращает (user_id, объявление), если пользователь владелец

        Отсутствие объявления и чужое объявление дают одну и ту же ошибку,
        чтобы не раскрывать существование объявления.
        """
        user_id = await self.authenticate(auth_header)
        listing = await self.listings.get_listing(listing_id)

        if not listing or not same_uuid(listing['user_id'], user_id):
            logger.warning(f"❌ Объявление {listing_id} не найдено или не принадлежит {user_id}")
            raise NotFoundOrUnauthorized()

        return user_id, listing
