from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.pvz_api.db.interfaces import IProductRepository, IPVZRepository, IReceptionRepository
from app.pvz_api.db.models import PVZ, City, Product, Reception, ReceptionStatus
from app.pvz_api.db.session import transaction
from app.pvz_api.db.utils import as_utc
from app.pvz_api.services.errors import (
    InvalidArgumentError,
    InvalidPagination,
    NoActiveReception,
    NoProductsInReception,
)
from app.pvz_api.services.locks import PickupPointLocks, ensure_locks, pickup_point_transaction
from app.pvz_api.services.validators import parse_city

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 30


@dataclass
class ReceptionWithProducts:
    reception: Reception
    products: List[Product] = field(default_factory=list)


@dataclass
class PVZWithReceptions:
    pvz: PVZ
    receptions: List[ReceptionWithProducts] = field(default_factory=list)


class PVZService:
    """
    Сервис ПВЗ: создание, постраничный список с приёмками и товарами,
    закрытие последней приёмки и удаление последнего товара.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pvz_repo: IPVZRepository,
        reception_repo: IReceptionRepository,
        product_repo: IProductRepository,
        locks: Optional[PickupPointLocks] = None,
    ) -> None:
        self._session_factory = session_factory
        self._pvz_repo = pvz_repo
        self._reception_repo = reception_repo
        self._product_repo = product_repo
        self._locks = ensure_locks(locks)

    async def create_pvz(self, city: Union[str, City]) -> PVZ:
        city = parse_city(city)
        async with transaction(self._session_factory) as session:
            pvz = await self._pvz_repo.create(session, city)
        logger.info(f"PVZ created: {pvz.id} ({city.value})")
        return pvz

    async def list_with_receptions(
        self,
        start_date: Optional[dt.datetime] = None,
        end_date: Optional[dt.datetime] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> List[PVZWithReceptions]:
        """
        Возвращает страницу ПВЗ (по убыванию даты регистрации) с приёмками и товарами.

        Если задан хотя бы один край периода, в ответ попадают только приёмки,
        в которых есть товары из периода, и только товары из периода;
        ПВЗ без таких приёмок исключаются из страницы, поэтому страница может
        оказаться короче limit. Без фильтра возвращаются все ПВЗ страницы.
        """
        if page < 1:
            raise InvalidPagination("Невалидный параметр page")
        if limit < 1 or limit > MAX_LIMIT:
            raise InvalidPagination("Невалидный параметр limit")

        start = as_utc(start_date)
        end = as_utc(end_date)
        if start is not None and end is not None and start >= end:
            raise InvalidArgumentError("Некорректные данные")
        date_filter = start is not None or end is not None

        async with transaction(self._session_factory) as session:
            pvzs = await self._pvz_repo.list_page(session, (page - 1) * limit, limit)
            if not pvzs:
                return []

            receptions = await self._reception_repo.list_by_pvz_ids(
                session, [p.id for p in pvzs], start, end
            )
            if date_filter and not receptions:
                return []

            products = await self._product_repo.list_by_reception_ids(
                session, [r.id for r in receptions], start, end
            )

        return self._group(pvzs, receptions, products, date_filter)

    @staticmethod
    def _group(
        pvzs: Sequence[PVZ],
        receptions: Sequence[Reception],
        products: Sequence[Product],
        date_filter: bool,
    ) -> List[PVZWithReceptions]:
        products_by_reception: Dict[uuid.UUID, List[Product]] = defaultdict(list)
        for product in products:
            products_by_reception[product.reception_id].append(product)

        receptions_by_pvz: Dict[uuid.UUID, List[ReceptionWithProducts]] = defaultdict(list)
        for reception in receptions:
            receptions_by_pvz[reception.pvz_id].append(
                ReceptionWithProducts(reception, products_by_reception.get(reception.id, []))
            )

        result: List[PVZWithReceptions] = []
        for pvz in pvzs:
            items = receptions_by_pvz.get(pvz.id, [])
            if date_filter and not items:
                continue
            result.append(PVZWithReceptions(pvz, items))
        return result

    async def list_all_pvz(self) -> List[PVZ]:
        async with transaction(self._session_factory) as session:
            return list(await self._pvz_repo.list_all(session))

    async def close_last_reception(self, pvz_id: Union[str, uuid.UUID]) -> Reception:
        async with pickup_point_transaction(
            self._session_factory, self._locks, self._pvz_repo, pvz_id
        ) as (session, pvz):
            reception = await self._reception_repo.get_last(session, pvz.id, for_update=True)
            if reception is None or not reception.is_open:
                logger.warning(f"No active reception to close for pvz {pvz.id}")
                raise NoActiveReception("Приемка уже закрыта")
            reception = await self._reception_repo.set_status(
                session, reception, ReceptionStatus.CLOSE
            )
        logger.info(f"Reception {reception.id} closed for pvz {reception.pvz_id}")
        return reception

    async def delete_last_product(self, pvz_id: Union[str, uuid.UUID]) -> None:
        async with pickup_point_transaction(
            self._session_factory, self._locks, self._pvz_repo, pvz_id
        ) as (session, pvz):
            reception = await self._reception_repo.get_last(session, pvz.id, for_update=True)
            if reception is None or not reception.is_open:
                logger.warning(f"No active reception for pvz {pvz.id}")
                raise NoActiveReception()
            product = await self._product_repo.get_last(session, reception.id)
            if product is None:
                logger.warning(f"No products to delete in reception {reception.id}")
                raise NoProductsInReception()
            await self._product_repo.delete(session, product)
        logger.info(f"Product {product.id} deleted from reception {reception.id}")
