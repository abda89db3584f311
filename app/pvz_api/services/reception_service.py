from __future__ import annotations

import logging
import uuid
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.pvz_api.db.interfaces import IPVZRepository, IReceptionRepository
from app.pvz_api.db.models import Reception
from app.pvz_api.services.errors import PickupPointAlreadyHasOpenReception
from app.pvz_api.services.locks import PickupPointLocks, ensure_locks, pickup_point_transaction

logger = logging.getLogger(__name__)


class ReceptionService:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pvz_repo: IPVZRepository,
        reception_repo: IReceptionRepository,
        locks: Optional[PickupPointLocks] = None,
    ) -> None:
        self._session_factory = session_factory
        self._pvz_repo = pvz_repo
        self._reception_repo = reception_repo
        self._locks = ensure_locks(locks)

    async def create_reception(self, pvz_id: Union[str, uuid.UUID]) -> Reception:
        """
        Открывает новую приёмку на ПВЗ.

        Отсутствие приёмок у ПВЗ не ошибка. Если последняя приёмка ещё открыта,
        бросает PickupPointAlreadyHasOpenReception; то же самое, если гонку
        поймал уникальный индекс в БД.
        """
        async with pickup_point_transaction(
            self._session_factory, self._locks, self._pvz_repo, pvz_id
        ) as (session, pvz):
            last = await self._reception_repo.get_last(session, pvz.id)
            if last is not None and last.is_open:
                logger.warning(f"PVZ {pvz.id} already has open reception {last.id}")
                raise PickupPointAlreadyHasOpenReception()
            reception = await self._reception_repo.create(session, pvz.id)
        logger.info(f"Reception {reception.id} opened for pvz {reception.pvz_id}")
        return reception
