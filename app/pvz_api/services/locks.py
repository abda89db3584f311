from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.pvz_api.db.interfaces import IPVZRepository
from app.pvz_api.db.models import PVZ
from app.pvz_api.db.session import transaction
from app.pvz_api.services.errors import PickupPointNotFound
from app.pvz_api.services.validators import parse_pvz_id

logger = logging.getLogger(__name__)


class PickupPointLocks:
    """
    Блокировки ПВЗ внутри процесса.

    SELECT ... FOR UPDATE сериализует изменения одного ПВЗ в Postgres,
    но SQLite его игнорирует. Поэтому изменения одного ПВЗ дополнительно
    выстраиваются в очередь на asyncio.Lock. Замок живёт, пока его кто-то держит
    или ждёт.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def get(self, pvz_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(pvz_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[pvz_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, pvz_id: uuid.UUID) -> AsyncIterator[None]:
        lock = self.get(pvz_id)
        async with lock:
            yield


async def lock_pickup_point(
    pvz_repo: IPVZRepository, session: AsyncSession, pvz_id: Union[str, uuid.UUID]
) -> PVZ:
    """
    Находит ПВЗ и блокирует его строку до конца транзакции.
    """
    pvz = await pvz_repo.get_by_id(session, parse_pvz_id(pvz_id), for_update=True)
    if pvz is None:
        logger.warning(f"PVZ not found: {pvz_id}")
        raise PickupPointNotFound()
    return pvz


@asynccontextmanager
async def pickup_point_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    locks: PickupPointLocks,
    pvz_repo: IPVZRepository,
    pvz_id: Union[str, uuid.UUID],
) -> AsyncIterator[Tuple[AsyncSession, PVZ]]:
    """
    Транзакция, в которой ПВЗ заблокирован и в процессе, и в БД.

    Все изменения приёмок и товаров одного ПВЗ проходят через неё, поэтому
    проверка состояния и последующая запись не пересекаются с параллельными
    запросами к тому же ПВЗ.
    """
    key = parse_pvz_id(pvz_id)
    async with locks.hold(key):
        async with transaction(session_factory) as session:
            pvz = await lock_pickup_point(pvz_repo, session, key)
            yield session, pvz


def ensure_locks(locks: Optional[PickupPointLocks]) -> PickupPointLocks:
    return locks if locks is not None else PickupPointLocks()
