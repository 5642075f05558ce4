import copy
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from premium_payments.clients.paytech_client import PayTechClient
from premium_payments.config import Config
from premium_payments.errors import NotFoundOrUnauthorized, Unauthenticated
from premium_payments.models.payment import GatewayPayment, PaymentStatus
from premium_payments.models.payment import PayTechCheckout
from premium_payments.ports import IdentityVerifier, PaymentGateway
from premium_payments.services.authorization import AuthorizationService
from premium_payments.services.entitlements import EntitlementService
from premium_payments.services.moneyfusion_payments import ReportPaymentService
from premium_payments.services.paytech_payments import SubscriptionPaymentService
from premium_payments.utils.ids import same_uuid
from premium_payments.web.app import create_app

OWNER_ID = "0b5c7f1e-1111-4a2b-9c3d-000000000001"
OTHER_USER_ID = "0b5c7f1e-2222-4a2b-9c3d-000000000002"
LISTING_ID = "7d9f2a10-3333-4e5f-8a6b-000000000010"
OWNER_TOKEN = "owner-jwt"
OTHER_TOKEN = "other-jwt"
PAYTECH_REF = f"PROP_{LISTING_ID}_1760000000000"


class InMemoryStore:
    """Хранилище в памяти с той же семантикой активации, что и asyncpg-репозитории"""

    def __init__(self):
        self.listings: dict[str, dict] = {}
        self.profiles: dict[str, dict] = {}
        self.subscriptions: dict[str, dict] = {}
        self.activate_calls = 0
        self.fail_with: Optional[Exception] = None

    async def get_listing(self, listing_id):
        listing = next((item for key, item in self.listings.items() if same_uuid(key, listing_id)), None)
        return copy.deepcopy(listing) if listing else None

    async def get_profile(self, user_id):
        return self.profiles.get(user_id)

    async def get_by_reference(self, payment_ref):
        sub = self.subscriptions.get(payment_ref)
        return copy.deepcopy(sub) if sub else None

    async def create_pending(self, user_id, property_id, plan, amount, currency, payment_token, payment_ref):
        self.subscriptions[payment_ref] = {
            'payment_ref': payment_ref,
            'user_id': user_id,
            'property_id': property_id,
            'plan': plan,
            'amount': amount,
            'currency': currency,
            'payment_token': payment_token,
            'status': 'pending',
            'starts_at': None,
            'expires_at': None,
            'updated_at': None,
            'invoice_data': None,
        }

    async def activate(self, activation):
        self.activate_calls += 1
        if self.fail_with:
            raise self.fail_with

        ref = activation['payment_ref']
        if ref not in self.subscriptions:
            if not activation['create_if_missing']:
                raise NotFoundOrUnauthorized()
            await self.create_pending(
                activation['user_id'], activation['property_id'], activation['plan'],
                Decimal(activation['amount']), 'XOF', ref, ref
            )

        sub = self.subscriptions[ref]
        if not same_uuid(sub['property_id'], activation['property_id']) or \
                not same_uuid(sub['user_id'], activation['user_id']):
            raise NotFoundOrUnauthorized()

        if sub['status'] == 'pending':
            sub.update(
                status='active',
                starts_at=activation['starts_at'],
                expires_at=activation['expires_at'],
                updated_at=activation['starts_at'],
                invoice_data=activation['invoice'],
            )
            already_active = False
        else:
            already_active = True

        listing = self.listings.get(sub['property_id'])
        if listing is None:
            raise NotFoundOrUnauthorized()
        current = listing['premium_expires_at']
        listing['is_premium'] = True
        listing['premium_expires_at'] = max(current or sub['expires_at'], sub['expires_at'])
        return {'expires_at': sub['expires_at'], 'already_active': already_active}


def make_payment(
    gateway: str = "moneyfusion",
    reference: str = "mf-token-1",
    amount: int = 6500,
    success: bool = True,
    status: PaymentStatus = PaymentStatus.PAID,
    raw_status: str = "paid"
) -> GatewayPayment:
    return GatewayPayment(
        gateway=gateway,
        reference=reference,
        success=success,
        status=status,
        raw_status=raw_status,
        amount=amount,
        method="Orange Money",
        transaction="TX-42",
    )


@pytest.fixture
def config():
    return Config(
        database_url="postgresql://localhost/test",
        supabase_url="https://project.supabase.co",
        supabase_service_key="service-key",
        paytech_api_key="api-key",
        paytech_secret_key="api-secret",
        paytech_allowed_ips=[],
        paytech_require_signature=False,
    )


@pytest.fixture
def store():
    store = InMemoryStore()
    store.listings[LISTING_ID] = {
        'id': LISTING_ID,
        'user_id': OWNER_ID,
        'title': 'Villa aux Almadies',
        'price': Decimal('150000000'),
        'city': 'Dakar',
        'location': 'Almadies',
        'is_premium': False,
        'premium_expires_at': None,
    }
    store.profiles[OWNER_ID] = {'id': OWNER_ID, 'full_name': 'Awa Diop', 'phone': '+221770000000'}
    return store


@pytest.fixture
def identity():
    """Мок identity-провайдера: два известных токена"""
    users = {OWNER_TOKEN: OWNER_ID, OTHER_TOKEN: OTHER_USER_ID}

    async def resolve_user(credential):
        if credential not in users:
            raise Unauthenticated()
        return users[credential]

    verifier = MagicMock(spec=IdentityVerifier)
    verifier.resolve_user = AsyncMock(side_effect=resolve_user)
    return verifier


@pytest.fixture
def moneyfusion_gateway():
    gateway = MagicMock(spec=PaymentGateway)
    gateway.fetch_payment = AsyncMock(return_value=make_payment())
    return gateway


@pytest.fixture
def paytech_gateway():
    gateway = MagicMock(spec=PayTechClient)
    gateway.fetch_payment = AsyncMock(return_value=make_payment(
        gateway="paytech", reference=PAYTECH_REF, amount=78000, raw_status="success"
    ))
    gateway.request_payment = AsyncMock(return_value=PayTechCheckout(
        token="pt-token-1", redirect_url="https://paytech.sn/payment/checkout/pt-token-1"
    ))
    return gateway


@pytest.fixture
def authorization(identity, store):
    return AuthorizationService(identity, store)


@pytest.fixture
def report_payments(moneyfusion_gateway, authorization, store):
    return ReportPaymentService(moneyfusion_gateway, authorization, EntitlementService(store), store)


@pytest.fixture
def subscription_payments(paytech_gateway, authorization, store, config):
    return SubscriptionPaymentService(
        paytech_gateway,
        authorization,
        EntitlementService(store),
        store,
        store,
        store,
        ipn_url=config.ipn_url,
        redirect_url=config.redirect_url
    )


@pytest.fixture
def yearly_subscription(store):
    """Подписка yearly в статусе pending, созданная при checkout"""
    store.subscriptions[PAYTECH_REF] = {
        'payment_ref': PAYTECH_REF,
        'user_id': OWNER_ID,
        'property_id': LISTING_ID,
        'plan': 'yearly',
        'amount': Decimal('78000'),
        'currency': 'XOF',
        'payment_token': 'pt-token-1',
        'status': 'pending',
        'starts_at': None,
        'expires_at': None,
        'updated_at': None,
        'invoice_data': None,
    }
    return store.subscriptions[PAYTECH_REF]


@pytest.fixture
async def client(aiohttp_client, config, report_payments, subscription_payments):
    app = create_app(config, report_payments, subscription_payments)
    return await aiohttp_client(app)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
