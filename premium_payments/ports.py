"""
Порты (интерфейсы), от которых зависят сервисы верификации.

Реализации: клиент Supabase Auth (identity) и asyncpg-репозитории.
Тесты подменяют их моками или in-memory реализациями.
"""
from decimal import Decimal
from typing import Optional, Protocol

from premium_payments.models.listing import ListingRecord, ProfileRecord
from premium_payments.models.payment import GatewayPayment
from premium_payments.models.subscription import Activation, ActivationResult, SubscriptionRecord


class IdentityVerifier(Protocol):
    async def resolve_user(self, credential: str) -> str:
        """
        Возвращает id пользователя по bearer-токену.

        Raises:
            Unauthenticated: токен отсутствует, просрочен или отклонен.
        """
        ...


class PaymentGateway(Protocol):
    async def fetch_payment(self, reference: str) -> GatewayPayment:
        """
        Запрашивает у шлюза текущий статус платежа.

        Raises:
            GatewayUnavailable: сеть, таймаут или ответ не 2xx.
            GatewayResponseInvalid: тело ответа не распознано.
        """
        ...


class ListingReader(Protocol):
    async def get_listing(self, listing_id: str) -> Optional[ListingRecord]:
        ...


class ProfileReader(Protocol):
    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...


class SubscriptionStore(Protocol):
    async def get_by_reference(self, payment_ref: str) -> Optional[SubscriptionRecord]:
        ...

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
        ...


class EntitlementStore(Protocol):
    async def activate(self, activation: Activation) -> ActivationResult:
        """
        Атомарно переводит подписку в active и включает премиум у объявления.

        Повторный вызов с тем же payment_ref не продлевает срок.

        Raises:
            NotFoundOrUnauthorized: нет подписки с таким payment_ref, подписка
                принадлежит другому объявлению или пользователю, нет объявления.
            PersistenceFailure: ошибка записи.
        """
        ...
