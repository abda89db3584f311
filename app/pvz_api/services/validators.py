import re
import uuid
from typing import Union

from app.pvz_api.db.models import City, ProductType, UserRole
from app.pvz_api.services.errors import (
    InvalidCity,
    InvalidEmail,
    InvalidProductType,
    InvalidRole,
    PickupPointNotFound,
)

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def validate_email(value: str) -> str:
    """Проверяет формат почты и возвращает её без пробелов по краям."""
    email = (value or "").strip()
    if not EMAIL_RE.fullmatch(email):
        raise InvalidEmail()
    return email


def parse_city(value: Union[str, City]) -> City:
    try:
        return City(value)
    except ValueError:
        raise InvalidCity() from None


def parse_product_type(value: Union[str, ProductType]) -> ProductType:
    try:
        return ProductType(value)
    except ValueError:
        raise InvalidProductType() from None


def parse_role(value: Union[str, UserRole]) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise InvalidRole() from None


def parse_pvz_id(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """Идентификатор ПВЗ, который нельзя разобрать, считается несуществующим."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise PickupPointNotFound() from None
