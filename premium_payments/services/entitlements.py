from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from premium_payments.constants import INVOICE_CURRENCY
from premium_payments.models.listing import ListingRecord, ProfileRecord
from premium_payments.models.payment import GatewayPayment
from premium_payments.models.subscription import Activation, ActivationResult, InvoiceSnapshot
from premium_payments.ports import EntitlementStore

logger = logging.getLogger(__name__)


def build_invoice(
    payment: GatewayPayment,
    listing: Optional[ListingRecord],
    profile: Optional[ProfileRecord],
    plan_label: str,
    amount: int,
    paid_at: datetime
) -> InvoiceSnapshot:
    """Собирает снимок данных для квитанции"""
    listing = listing or {}  # type: ignore
    profile = profile or {}  # type: ignore
    return {
        'propertyTitle': listing.get('title') or 'Non spécifié',
        'propertyLocation': f"{listing.get('city') or ''}, {listing.get('location') or ''}",
        'customerName': profile.get('full_name') or 'Client',
        'customerPhone': profile.get('phone') or '',
        'plan': plan_label,
        'amount': amount,
        'currency': INVOICE_CURRENCY,
        'paymentRef': payment.reference,
        'paymentMethod': payment.method or payment.gateway.capitalize(),
        'paidAt': paid_at.isoformat(),
    }


class EntitlementService:
    """Сервис активации премиум-доступа объявления"""

    def __init__(self, store: EntitlementStore):
        self.store = store

    async def activate(
        self,
        *,
        payment_ref: str,
        listing_id: str,
        user_id: str,
        plan: str,
        amount: int,
        duration: timedelta,
        invoice: InvoiceSnapshot,
        create_if_missing: bool,
        now: Optional[datetime] = None
    ) -> ActivationResult:
        """
        Вычисляет окно подписки и записывает активацию

        Если подписка уже активна, хранилище вернет прежний срок.
        """
        starts_at = now or datetime.now(timezone.utc)
        activation: Activation = {
            'payment_ref': payment_ref,
            'property_id': listing_id,
            'user_id': user_id,
            'plan': plan,
            'amount': amount,
            'starts_at': starts_at,
            'expires_at': starts_at + duration,
            'invoice': invoice,
            'create_if_missing': create_if_missing,
        }

        result = await self.store.activate(activation)

        if result['already_active']:
            logger.info(f"⚠️ Повторная активация {payment_ref}: состояние не изменено")
        else:
            logger.info(f"✅ Премиум включен: объявление {listing_id}, ref={payment_ref}, до {result['expires_at']}")
        return result
