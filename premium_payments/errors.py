"""Иерархия ошибок верификации платежей и их HTTP-статусы"""
from typing import Any, Optional


class PaymentError(Exception):
    """Базовая ошибка: HTTP-статус, сообщение для клиента и диагностические поля"""

    status = 500
    message = "Erreur inconnue"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, **self.details}


class ValidationError(PaymentError):
    status = 400
    message = "Requête invalide"


class Unauthenticated(PaymentError):
    status = 401
    message = "Non autorisé"


class Forbidden(PaymentError):
    """Источник IPN не прошел проверку (IP или подпись)"""
    status = 403
    message = "Non autorisé"


class NotFoundOrUnauthorized(PaymentError):
    """Объявление не найдено или не принадлежит пользователю (намеренно не различаются)"""
    status = 404
    message = "Propriété non trouvée"


class PaymentNotConfirmed(PaymentError):
    status = 400
    message = "Le paiement n'est pas encore confirmé"


class InsufficientAmount(PaymentError):
    status = 400
    message = "Le montant du paiement est insuffisant"


class GatewayUnavailable(PaymentError):
    """Шлюз недоступен или ответил не 2xx. Это НЕ означает неуспешный платеж"""
    status = 500
    message = "Impossible de vérifier le paiement"


class GatewayResponseInvalid(PaymentError):
    status = 500
    message = "Réponse du service de paiement invalide"


class PersistenceFailure(PaymentError):
    status = 500
    message = "Erreur lors de la mise à jour"
