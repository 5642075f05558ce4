import hashlib
import hmac
import secrets
from typing import Optional


def sign_payload(payload: bytes, secret: str) -> str:
    """
    Вычисляет подпись IPN: HMAC-SHA256 от тела запроса

    Args:
        payload: Сырое тело запроса
        secret: PAYTECH_SECRET_KEY

    Returns:
        Подпись в hex формате (64 символа)
    """
    return hmac.new(secret.encode('utf-8'), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Проверяет подпись IPN с использованием защищенного сравнения

    Returns:
        True если подпись соответствует телу запроса, иначе False
    """
    if not signature or not secret:
        return False
    expected = sign_payload(payload, secret)
    # compare_digest на str падает с TypeError для не-ASCII символов
    return secrets.compare_digest(expected.encode('ascii'), signature.strip().lower().encode('utf-8'))
