import uuid
from typing import Any, Optional


def normalize_uuid(value: Any) -> Optional[str]:
    """Каноническая запись UUID (нижний регистр, с дефисами) или None"""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


def same_uuid(left: Any, right: Any) -> bool:
    """Сравнивает идентификаторы как UUID, а не как строки"""
    left, right = normalize_uuid(left), normalize_uuid(right)
    return left is not None and left == right
