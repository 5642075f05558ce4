import logging

from premium_payments.errors import InsufficientAmount, PaymentNotConfirmed
from premium_payments.models.payment import GatewayPayment

logger = logging.getLogger(__name__)


def verify_payment(payment: GatewayPayment, expected_amount: int) -> GatewayPayment:
    """
    Проверяет, что платеж действительно проведен и сумма не меньше ожидаемой

    Переплата не ошибка. Любой статус, кроме успешного, отклоняется
    независимо от суммы.

    Raises:
        PaymentNotConfirmed: шлюз не подтвердил оплату
        InsufficientAmount: оплачено меньше ожидаемого
    """
    if not payment.is_settled:
        logger.warning(
            f"❌ Платеж {payment.gateway}:{payment.reference} не подтвержден: "
            f"success={payment.success}, status={payment.raw_status}"
        )
        raise PaymentNotConfirmed(status=payment.raw_status)

    if payment.amount < expected_amount:
        logger.warning(
            f"❌ Недостаточная сумма {payment.gateway}:{payment.reference}: "
            f"ожидалось {expected_amount}, получено {payment.amount}"
        )
        raise InsufficientAmount(expected=expected_amount, received=payment.amount)

    return payment
