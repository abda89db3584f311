from __future__ import annotations

import logging
import uuid
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.pvz_api.db.interfaces import IProductRepository, IPVZRepository, IReceptionRepository
from app.pvz_api.db.models import Product, ProductType
from app.pvz_api.services.errors import NoActiveReception
from app.pvz_api.services.locks import PickupPointLocks, ensure_locks, pickup_point_transaction
from app.pvz_api.services.validators import parse_product_type

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        product_repo: IProductRepository,
        reception_repo: IReceptionRepository,
        pvz_repo: IPVZRepository,
        locks: Optional[PickupPointLocks] = None,
    ) -> None:
        self._session_factory = session_factory
        self._product_repo = product_repo
        self._reception_repo = reception_repo
        self._pvz_repo = pvz_repo
        self._locks = ensure_locks(locks)

    async def add_product(
        self, product_type: Union[str, ProductType], pvz_id: Union[str, uuid.UUID]
    ) -> Product:
        """
        Добавляет товар в открытую приёмку ПВЗ.
        """
        product_type = parse_product_type(product_type)
        async with pickup_point_transaction(
            self._session_factory, self._locks, self._pvz_repo, pvz_id
        ) as (session, pvz):
            reception = await self._reception_repo.get_last(session, pvz.id, for_update=True)
            if reception is None or not reception.is_open:
                logger.warning(f"No active reception for pvz {pvz.id}")
                raise NoActiveReception()
            product = await self._product_repo.add(session, product_type, reception.id)
        logger.info(f"Product {product.id} ({product_type.value}) added to reception {reception.id}")
        return product
