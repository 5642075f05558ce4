"""PayTech: создание платежа (checkout) и обработка IPN"""
import json
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from premium_payments.clients.paytech_client import PayTechClient
from premium_payments.constants import CHECKOUT_CURRENCY, PLAN_LABELS, SUBSCRIPTION_DURATIONS, SUBSCRIPTION_PRICES
from premium_payments.errors import NotFoundOrUnauthorized, ValidationError
from premium_payments.models.payment import parse_amount
from premium_payments.models.subscription import CustomField, SubscriptionRecord
from premium_payments.ports import ListingReader, ProfileReader, SubscriptionStore
from premium_payments.services.authorization import AuthorizationService
from premium_payments.services.entitlements import EntitlementService, build_invoice
from premium_payments.services.verification import verify_payment
from premium_payments.utils.ids import normalize_uuid, same_uuid

logger = logging.getLogger(__name__)


def parse_custom_field(raw: Any) -> CustomField:
    """Разбирает custom_field из IPN (JSON-строка, которую мы сами отправили при checkout)"""
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError as e:
        logger.error(f"❌ Не удалось разобрать custom_field: {e}")
        raise ValidationError("Données personnalisées invalides") from e

    if not isinstance(data, dict) or not isinstance(data.get('propertyId'), str) or not data['propertyId']:
        logger.error(f"❌ custom_field без propertyId: {raw!r}")
        raise ValidationError("Données personnalisées invalides")

    return {
        'propertyId': data['propertyId'],
        'userId': str(data.get('userId') or ''),
        'plan': str(data.get('plan') or ''),
        'expectedAmount': parse_amount(data.get('expectedAmount')),
    }


def expected_amount_for(subscription: SubscriptionRecord, plan: str, echoed: int) -> int:
    """
    Ожидаемая сумма для IPN

    Берется из данных сервера (сумма подписки или цена тарифа). Значение,
    вернувшееся через шлюз в custom_field, может только поднять порог.
    """
    server_amount = parse_amount(subscription.get('amount')) or SUBSCRIPTION_PRICES[plan]
    if echoed and echoed != server_amount:
        logger.warning(
            f"⚠️ expectedAmount из custom_field ({echoed}) не совпадает с суммой подписки "
            f"{subscription['payment_ref']} ({server_amount})"
        )
    return max(server_amount, echoed)


class SubscriptionPaymentService:
    """Сервис оплаты премиум-подписки через PayTech"""

    def __init__(
        self,
        gateway: PayTechClient,
        authorization: AuthorizationService,
        entitlements: EntitlementService,
        subscriptions: SubscriptionStore,
        listings: ListingReader,
        profiles: ProfileReader,
        ipn_url: str,
        redirect_url: str
    ):
        self.gateway = gateway
        self.authorization = authorization
        self.entitlements = entitlements
        self.subscriptions = subscriptions
        self.listings = listings
        self.profiles = profiles
        self.ipn_url = ipn_url
        self.redirect_url = redirect_url

    async def initiate(self, auth_header: Optional[str], listing_id: Any, plan: Any = "monthly") -> dict:
        """Создает платеж PayTech и подписку в статусе pending"""
        amount = SUBSCRIPTION_PRICES.get(plan) if isinstance(plan, str) else None
        if not amount:
            logger.error(f"❌ Неизвестный тариф: {plan!r}")
            raise ValidationError("Formule d'abonnement invalide")

        raw_listing_id, listing_id = listing_id, normalize_uuid(listing_id)
        if listing_id is None:
            logger.error(f"❌ Неверный формат propertyId: {raw_listing_id!r}")
            raise ValidationError("ID de propriété invalide")

        user_id, listing = await self.authorization.authorize_owner(auth_header, listing_id)

        label = PLAN_LABELS[plan]
        ref_command = f"PROP_{listing_id}_{int(time.time() * 1000)}"
        checkout = await self.gateway.request_payment(
            item_name=f"Abonnement {label} - {listing.get('title') or ''}".rstrip(" -"),
            item_price=amount,
            currency=CHECKOUT_CURRENCY,
            ref_command=ref_command,
            command_name=f"Abonnement {label} #{listing_id[:8]}",
            ipn_url=self.ipn_url,
            success_url=f"{self.redirect_url}/dashboard",
            cancel_url=f"{self.redirect_url}/dashboard",
            custom_field={
                'propertyId': listing_id,
                'userId': user_id,
                'plan': plan,
                'expectedAmount': amount,
            }
        )

        await self.subscriptions.create_pending(
            user_id=user_id,
            property_id=listing_id,
            plan=plan,
            amount=Decimal(amount),
            currency=CHECKOUT_CURRENCY,
            payment_token=checkout.token,
            payment_ref=ref_command
        )
        logger.info(f"✅ Платеж PayTech создан: ref={ref_command}, тариф={plan}")

        return {'success': True, 'paymentUrl': checkout.redirect_url, 'token': checkout.token}

    async def handle_ipn(self, body: Any) -> dict:
        """
        Обрабатывает IPN от PayTech

        Тело уведомления не считается доказательством оплаты: статус и сумма
        перепроверяются запросом к API PayTech. Повторная доставка того же
        ref_command отвечает успехом без изменений.
        """
        if not isinstance(body, dict):
            raise ValidationError("Requête invalide")

        ref_command = body.get('ref_command')
        if not isinstance(ref_command, str) or not ref_command.strip():
            logger.error("❌ IPN без ref_command")
            raise ValidationError("Référence de commande manquante")

        logger.info(f"📥 IPN PayTech: ref={ref_command}, transaction={body.get('transaction_id')}")

        subscription = await self.subscriptions.get_by_reference(ref_command)
        if not subscription:
            logger.error(f"❌ Подписка для ref={ref_command} не найдена")
            raise NotFoundOrUnauthorized()

        if subscription['status'] == 'active':
            logger.info(f"⚠️ Платеж {ref_command} уже обработан, пропускаем дубликат")
            updated_at = subscription.get('updated_at')
            return {
                'success': True,
                'message': 'Paiement déjà traité',
                'processed_at': updated_at.isoformat() if updated_at else None,
            }

        custom = parse_custom_field(body.get('custom_field'))
        if not same_uuid(custom['propertyId'], subscription['property_id']) or (
            custom['userId'] and not same_uuid(custom['userId'], subscription['user_id'])
        ):
            logger.error(f"❌ custom_field не соответствует подписке {ref_command}")
            raise NotFoundOrUnauthorized()

        plan = subscription['plan'] if subscription['plan'] in SUBSCRIPTION_PRICES else custom['plan']
        if plan not in SUBSCRIPTION_PRICES:
            raise ValidationError("Formule d'abonnement invalide")
        expected = expected_amount_for(subscription, plan, custom['expectedAmount'])

        payment = await self.gateway.fetch_payment(ref_command)
        verify_payment(payment, expected)

        listing = await self.listings.get_listing(subscription['property_id'])
        profile = await self.profiles.get_profile(subscription['user_id'])
        now = datetime.now(timezone.utc)
        method = body.get('payment_method') or payment.method
        invoice = build_invoice(
            payment.model_copy(update={'method': method}), listing, profile, PLAN_LABELS[plan], expected, now
        )

        await self.entitlements.activate(
            payment_ref=ref_command,
            listing_id=subscription['property_id'],
            user_id=subscription['user_id'],
            plan=plan,
            amount=expected,
            duration=SUBSCRIPTION_DURATIONS[plan],
            invoice=invoice,
            create_if_missing=False,
            now=now
        )

        logger.info(f"💰 IPN PayTech обработан: ref={ref_command}, тариф={plan}")
        return {'success': True, 'message': 'Paiement confirmé et propriété mise à jour'}
