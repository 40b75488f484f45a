# greengrove/utils/validators.py
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Tuple, Type, TypeVar
from ..errors import ValidationError, InvalidStatus
from .formatters import to_money

E = TypeVar("E", bound=Enum)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20

def parse_quantity(value: Any) -> int:
    """Positive integer quantity; anything else is rejected"""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid quantity: {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f"Invalid quantity: {value!r}")
    return value

def parse_id(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if parsed < 1 or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"Invalid {field}: {value!r}")
    return parsed

def parse_amount(value: Any, field: str = "amount") -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Invalid {field}: {value!r}")
    return amount

def parse_status(enum_cls: Type[E], value: Any, entity: str) -> E:
    """Map a raw status string onto its enum, or raise InvalidStatus"""
    allowed = [member.value for member in enum_cls]
    if isinstance(value, enum_cls):
        return value
    if value not in allowed:
        raise InvalidStatus(entity, value, allowed)
    return enum_cls(value)

def parse_items(items: Any) -> List[Tuple[int, int]]:
    """[{product_id, quantity}, ...] -> [(product_id, quantity), ...]"""
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("items must be a non-empty list")
    parsed = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"Invalid item: {item!r}")
        parsed.append((
            parse_id(item.get("product_id"), "product_id"),
            parse_quantity(item.get("quantity")),
        ))
    return parsed

def page_limit(page: Any = None, limit: Any = None) -> Tuple[int, int]:
    """(limit, offset) with page >= 1 and 1 <= limit <= 100"""
    try:
        page = max(1, int(page or 1))
        limit = min(MAX_PAGE_SIZE, max(1, int(limit or DEFAULT_PAGE_SIZE)))
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    return limit, (page - 1) * limit

