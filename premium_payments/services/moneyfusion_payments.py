"""Pull-верификация: клиент присылает токен MoneyFusion после оплаты отчета"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from premium_payments.constants import (
    ESTIMATION_REPORT_DURATION, ESTIMATION_REPORT_LABEL, ESTIMATION_REPORT_PLAN, ESTIMATION_REPORT_PRICE
)
from premium_payments.errors import ValidationError
from premium_payments.ports import PaymentGateway, ProfileReader
from premium_payments.services.authorization import AuthorizationService
from premium_payments.services.entitlements import EntitlementService, build_invoice
from premium_payments.services.verification import verify_payment

logger = logging.getLogger(__name__)


class ReportPaymentService:
    """Подтверждает оплату MoneyFusion и делает объявление премиум на 30 дней"""

    def __init__(
        self,
        gateway: PaymentGateway,
        authorization: AuthorizationService,
        entitlements: EntitlementService,
        profiles: ProfileReader,
        expected_amount: int = ESTIMATION_REPORT_PRICE
    ):
        self.gateway = gateway
        self.authorization = authorization
        self.entitlements = entitlements
        self.profiles = profiles
        self.expected_amount = expected_amount

    async def verify(self, auth_header: Optional[str], token: Any, listing_id: Any) -> dict:
        """
        Проверяет платеж и активирует премиум

        Args:
            auth_header: Заголовок Authorization вызывающего клиента
            token: Токен платежа MoneyFusion
            listing_id: ID объявления

        Returns:
            Тело ответа 200
        """
        if not isinstance(token, str) or not token.strip() or not isinstance(listing_id, str) or not listing_id:
            raise ValidationError("Token et propertyId requis")

        user_id, listing = await self.authorization.authorize_owner(auth_header, listing_id)

        payment = await self.gateway.fetch_payment(token)
        verify_payment(payment, self.expected_amount)

        profile = await self.profiles.get_profile(user_id)
        now = datetime.now(timezone.utc)
        invoice = build_invoice(payment, listing, profile, ESTIMATION_REPORT_LABEL, payment.amount, now)

        result = await self.entitlements.activate(
            payment_ref=token,
            listing_id=listing['id'],
            user_id=user_id,
            plan=ESTIMATION_REPORT_PLAN,
            amount=self.expected_amount,
            duration=ESTIMATION_REPORT_DURATION,
            invoice=invoice,
            create_if_missing=True,
            now=now
        )

        logger.info(f"💰 Оплата MoneyFusion обработана: объявление {listing['id']}, сумма {payment.amount}")

        return {
            'success': True,
            'message': 'Votre annonce est maintenant premium !',
            'expiresAt': result['expires_at'].isoformat(),
            'paymentInfo': {
                'transaction': payment.transaction,
                'amount': payment.amount,
                'method': payment.method,
            }
        }
