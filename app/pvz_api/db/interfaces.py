"""
Интерфейсы репозиториев.

Сервисы зависят только от этих протоколов, а не от конкретных классов,
поэтому в тестах любой репозиторий можно заменить подделкой.
Каждый метод первым аргументом принимает открытую сессию: так несколько
репозиториев работают внутри одной транзакции.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional, Protocol, Sequence, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession

from app.pvz_api.db.models import (
    PVZ,
    City,
    Product,
    ProductType,
    Reception,
    ReceptionStatus,
    User,
    UserRole,
)


@runtime_checkable
class IPVZRepository(Protocol):

    async def create(self, session: AsyncSession, city: City) -> PVZ:
        """Создаёт ПВЗ."""
        ...

    async def get_by_id(
        self, session: AsyncSession, pvz_id: uuid.UUID, for_update: bool = False
    ) -> Optional[PVZ]:
        """Возвращает ПВЗ или None. for_update блокирует строку до конца транзакции."""
        ...

    async def list_page(self, session: AsyncSession, offset: int, limit: int) -> Sequence[PVZ]:
        """Страница ПВЗ по убыванию даты регистрации."""
        ...

    async def list_all(self, session: AsyncSession) -> Sequence[PVZ]:
        ...


@runtime_checkable
class IReceptionRepository(Protocol):

    async def get_last(
        self, session: AsyncSession, pvz_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Reception]:
        """Последняя по времени создания приёмка ПВЗ или None."""
        ...

    async def create(self, session: AsyncSession, pvz_id: uuid.UUID) -> Reception:
        """Создаёт открытую приёмку."""
        ...

    async def set_status(
        self, session: AsyncSession, reception: Reception, status: ReceptionStatus
    ) -> Reception:
        ...

    async def list_by_pvz_ids(
        self,
        session: AsyncSession,
        pvz_ids: Sequence[uuid.UUID],
        start: Optional[dt.datetime],
        end: Optional[dt.datetime],
    ) -> Sequence[Reception]:
        """Приёмки ПВЗ; при заданном окне только с товарами внутри окна."""
        ...


@runtime_checkable
class IProductRepository(Protocol):

    async def add(
        self, session: AsyncSession, product_type: ProductType, reception_id: uuid.UUID
    ) -> Product:
        ...

    async def get_last(self, session: AsyncSession, reception_id: uuid.UUID) -> Optional[Product]:
        ...

    async def delete(self, session: AsyncSession, product: Product) -> None:
        ...

    async def list_by_reception_ids(
        self,
        session: AsyncSession,
        reception_ids: Sequence[uuid.UUID],
        start: Optional[dt.datetime],
        end: Optional[dt.datetime],
    ) -> Sequence[Product]:
        ...


@runtime_checkable
class IUserRepository(Protocol):

    async def get_by_email(self, session: AsyncSession, email: str) -> Optional[User]:
        ...

    async def create(
        self, session: AsyncSession, email: str, password_hash: str, role: UserRole
    ) -> User:
        ...
