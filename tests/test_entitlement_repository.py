import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import asyncpg
import pytest

from premium_payments.db.repositories.entitlements import EntitlementRepository
from premium_payments.errors import NotFoundOrUnauthorized, PersistenceFailure

from conftest import LISTING_ID, OTHER_USER_ID, OWNER_ID, PAYTECH_REF

OTHER_LISTING_ID = "7d9f2a10-4444-4e5f-8a6b-000000000020"


def owned_row(status, expires_at=None, property_id=LISTING_ID, user_id=OWNER_ID):
    """Строка подписки в том виде, в каком ее отдает asyncpg (UUID-объекты)"""
    return {
        'status': status,
        'expires_at': expires_at,
        'property_id': uuid.UUID(property_id),
        'user_id': uuid.UUID(user_id),
    }


class FakeConnection:
    """Минимальная подмена asyncpg.Connection для проверки ветвления SQL"""

    def __init__(self, row=None, listing_exists=True, error=None):
        self.row = row
        self.listing_exists = listing_exists
        self.error = error
        self.executed = []
        self.rolled_back = False

    @asynccontextmanager
    async def transaction(self):
        try:
            yield
        except BaseException:
            self.rolled_back = True
            raise

    async def fetchrow(self, query, *args):
        if self.error:
            raise self.error
        return self.row

    async def execute(self, query, *args):
        self.executed.append((' '.join(query.split()), args))
        if 'INSERT INTO subscriptions' in query:
            if self.row is None:
                user_id, property_id = args[0], args[1]
                self.row = owned_row('pending', property_id=str(property_id), user_id=str(user_id))
                return "INSERT 0 1"
            return "INSERT 0 0"
        if 'UPDATE subscriptions' in query:
            return "UPDATE 1"
        if 'UPDATE properties' in query:
            return "UPDATE 1" if self.listing_exists else "UPDATE 0"
        raise AssertionError(f"unexpected query: {query}")

    def statements(self):
        return [sql.split(' ')[0] + ' ' + sql.split(' ')[1] for sql, _ in self.executed]


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


def make_activation(create_if_missing=False, now=None):
    now = now or datetime.now(timezone.utc)
    return {
        'payment_ref': PAYTECH_REF,
        'property_id': LISTING_ID,
        'user_id': OWNER_ID,
        'plan': 'yearly',
        'amount': 78000,
        'starts_at': now,
        'expires_at': now + timedelta(days=365),
        'invoice': {'currency': 'FCFA', 'paymentRef': PAYTECH_REF},
        'create_if_missing': create_if_missing,
    }


@pytest.mark.asyncio
class TestEntitlementRepository:

    async def test_pending_subscription_is_activated(self):
        conn = FakeConnection(row=owned_row('pending'))
        activation = make_activation()

        result = await EntitlementRepository(FakePool(conn)).activate(activation)

        assert result == {'expires_at': activation['expires_at'], 'already_active': False}
        assert conn.statements() == ['UPDATE subscriptions', 'UPDATE properties']
        _, listing_args = conn.executed[1]
        assert str(listing_args[0]) == LISTING_ID
        assert listing_args[1] == activation['expires_at']

    async def test_active_subscription_keeps_its_window(self):
        existing = datetime.now(timezone.utc) + timedelta(days=200)
        conn = FakeConnection(row=owned_row('active', existing))

        result = await EntitlementRepository(FakePool(conn)).activate(make_activation())

        assert result == {'expires_at': existing, 'already_active': True}
        assert conn.statements() == ['UPDATE properties']
        assert conn.executed[0][1][1] == existing

    async def test_expired_subscription_is_not_reactivated(self):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        conn = FakeConnection(row=owned_row('expired', past))

        result = await EntitlementRepository(FakePool(conn)).activate(make_activation())

        assert result['already_active'] is True
        assert conn.executed == []

    async def test_unknown_reference(self):
        conn = FakeConnection(row=None)

        with pytest.raises(NotFoundOrUnauthorized):
            await EntitlementRepository(FakePool(conn)).activate(make_activation())

        assert conn.executed == []

    async def test_pull_flow_creates_record_first(self):
        conn = FakeConnection(row=None)

        result = await EntitlementRepository(FakePool(conn)).activate(make_activation(create_if_missing=True))

        assert result['already_active'] is False
        assert conn.statements() == ['INSERT INTO', 'UPDATE subscriptions', 'UPDATE properties']

    async def test_missing_listing_rolls_back(self):
        conn = FakeConnection(row=owned_row('pending'), listing_exists=False)

        with pytest.raises(NotFoundOrUnauthorized):
            await EntitlementRepository(FakePool(conn)).activate(make_activation())

        assert conn.rolled_back is True

    @pytest.mark.parametrize("error", [asyncpg.InterfaceError("connection is closed"), ConnectionResetError()])
    async def test_driver_errors_become_persistence_failure(self, error):
        conn = FakeConnection(error=error)

        with pytest.raises(PersistenceFailure):
            await EntitlementRepository(FakePool(conn)).activate(make_activation())

    @pytest.mark.parametrize("status, property_id, user_id", [
        ('active', OTHER_LISTING_ID, OWNER_ID),
        ('active', LISTING_ID, OTHER_USER_ID),
        ('pending', OTHER_LISTING_ID, OWNER_ID),
    ])
    async def test_reference_bound_to_another_listing_or_user(self, status, property_id, user_id):
        """Токен, уже записанный за другим объявлением или пользователем, не активирует это объявление"""
        expires_at = datetime.now(timezone.utc) + timedelta(days=20) if status == 'active' else None
        conn = FakeConnection(row=owned_row(status, expires_at, property_id=property_id, user_id=user_id))

        with pytest.raises(NotFoundOrUnauthorized):
            await EntitlementRepository(FakePool(conn)).activate(make_activation(create_if_missing=True))

        assert conn.statements() == ['INSERT INTO']
        assert conn.rolled_back is True

    async def test_listing_update_uses_stored_listing_id(self):
        conn = FakeConnection(row=owned_row('pending'))
        activation = make_activation()
        activation['property_id'] = LISTING_ID.upper()

        await EntitlementRepository(FakePool(conn)).activate(activation)

        _, listing_args = conn.executed[1]
        assert listing_args[0] == uuid.UUID(LISTING_ID)
