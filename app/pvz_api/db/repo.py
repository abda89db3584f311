from __future__ import annotations

import datetime as dt
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import and_, exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.pvz_api.db.models import (
    OPEN_RECEPTION_INDEX,
    PVZ,
    City,
    Product,
    ProductType,
    Reception,
    ReceptionStatus,
    User,
    UserRole,
)
from app.pvz_api.db.utils import utcnow
from app.pvz_api.services.errors import (
    PickupPointAlreadyHasOpenReception,
    StorageError,
    UserAlreadyExists,
)

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """
    Заворачивает ошибки драйвера в StorageError, не раскрывая деталей БД.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"DB error while {action}: {exc}")
        raise StorageError() from exc


def _window_conditions(start: Optional[dt.datetime], end: Optional[dt.datetime]) -> List:
    """
    Условия на Product.date_time для окна [start, end].
    Без начала нижней границы нет, без конца верхняя граница равна текущему моменту.
    """
    conditions = [Product.date_time <= (end if end is not None else utcnow())]
    if start is not None:
        conditions.append(Product.date_time >= start)
    return conditions


class PVZRepository:

    async def create(self, session: AsyncSession, city: City) -> PVZ:
        with storage_errors("creating pvz"):
            pvz = PVZ(id=uuid.uuid4(), city=city, registration_date=utcnow())
            session.add(pvz)
            await session.flush()
            return pvz

    async def get_by_id(
        self, session: AsyncSession, pvz_id: uuid.UUID, for_update: bool = False
    ) -> Optional[PVZ]:
        q = select(PVZ).where(PVZ.id == pvz_id).limit(1)
        if for_update:
            q = q.with_for_update()
        with storage_errors("reading pvz"):
            return (await session.execute(q)).scalar_one_or_none()

    async def list_page(self, session: AsyncSession, offset: int, limit: int) -> Sequence[PVZ]:
        q = (
            select(PVZ)
            .order_by(PVZ.registration_date.desc(), PVZ.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with storage_errors("reading pvz page"):
            return (await session.execute(q)).scalars().all()

    async def list_all(self, session: AsyncSession) -> Sequence[PVZ]:
        q = select(PVZ).order_by(PVZ.registration_date.desc(), PVZ.id.desc())
        with storage_errors("reading pvz list"):
            return (await session.execute(q)).scalars().all()


class ReceptionRepository:

    async def get_last(
        self, session: AsyncSession, pvz_id: uuid.UUID, for_update: bool = False
    ) -> Optional[Reception]:
        q = (
            select(Reception)
            .where(Reception.pvz_id == pvz_id)
            .order_by(Reception.date_time.desc(), Reception.id.desc())
            .limit(1)
        )
        if for_update:
            q = q.with_for_update()
        with storage_errors("reading last reception"):
            return (await session.execute(q)).scalars().first()

    async def create(self, session: AsyncSession, pvz_id: uuid.UUID) -> Reception:
        reception = Reception(
            id=uuid.uuid4(),
            pvz_id=pvz_id,
            status=ReceptionStatus.IN_PROGRESS,
            date_time=utcnow(),
        )
        try:
            session.add(reception)
            await session.flush()
        except IntegrityError as exc:
            if OPEN_RECEPTION_INDEX in str(exc.orig) or "receptions.pvz_id" in str(exc.orig):
                logger.warning(f"Open reception already exists for pvz {pvz_id}")
                raise PickupPointAlreadyHasOpenReception() from exc
            logger.error(f"DB error while creating reception: {exc}")
            raise StorageError() from exc
        except SQLAlchemyError as exc:
            logger.error(f"DB error while creating reception: {exc}")
            raise StorageError() from exc
        return reception

    async def set_status(
        self, session: AsyncSession, reception: Reception, status: ReceptionStatus
    ) -> Reception:
        with storage_errors("updating reception status"):
            reception.status = status
            await session.flush()
            return reception

    async def list_by_pvz_ids(
        self,
        session: AsyncSession,
        pvz_ids: Sequence[uuid.UUID],
        start: Optional[dt.datetime],
        end: Optional[dt.datetime],
    ) -> Sequence[Reception]:
        if not pvz_ids:
            return []
        q = select(Reception).where(Reception.pvz_id.in_(pvz_ids))
        if start is not None or end is not None:
            q = q.where(
                exists().where(
                    and_(Product.reception_id == Reception.id, *_window_conditions(start, end))
                )
            )
        q = q.order_by(Reception.date_time.asc(), Reception.id.asc())
        with storage_errors("reading receptions"):
            return (await session.execute(q)).scalars().all()


class ProductRepository:

    async def add(
        self, session: AsyncSession, product_type: ProductType, reception_id: uuid.UUID
    ) -> Product:
        with storage_errors("adding product"):
            product = Product(
                id=uuid.uuid4(),
                type=product_type,
                reception_id=reception_id,
                date_time=utcnow(),
            )
            session.add(product)
            await session.flush()
            return product

    async def get_last(self, session: AsyncSession, reception_id: uuid.UUID) -> Optional[Product]:
        q = (
            select(Product)
            .where(Product.reception_id == reception_id)
            .order_by(Product.date_time.desc(), Product.id.desc())
            .limit(1)
        )
        with storage_errors("reading last product"):
            return (await session.execute(q)).scalars().first()

    async def delete(self, session: AsyncSession, product: Product) -> None:
        with storage_errors("deleting product"):
            await session.delete(product)
            await session.flush()

    async def list_by_reception_ids(
        self,
        session: AsyncSession,
        reception_ids: Sequence[uuid.UUID],
        start: Optional[dt.datetime],
        end: Optional[dt.datetime],
    ) -> Sequence[Product]:
        if not reception_ids:
            return []
        q = select(Product).where(Product.reception_id.in_(reception_ids))
        if start is not None or end is not None:
            q = q.where(*_window_conditions(start, end))
        q = q.order_by(Product.date_time.asc(), Product.id.asc())
        with storage_errors("reading products"):
            return (await session.execute(q)).scalars().all()


class UserRepository:

    async def get_by_email(self, session: AsyncSession, email: str) -> Optional[User]:
        q = select(User).where(User.email == email).limit(1)
        with storage_errors("reading user"):
            return (await session.execute(q)).scalar_one_or_none()

    async def create(
        self, session: AsyncSession, email: str, password_hash: str, role: UserRole
    ) -> User:
        user = User(id=uuid.uuid4(), email=email, password_hash=password_hash, role=role)
        try:
            session.add(user)
            await session.flush()
        except IntegrityError as exc:
            logger.warning(f"User {email} already exists")
            raise UserAlreadyExists() from exc
        except SQLAlchemyError as exc:
            logger.error(f"DB error while creating user: {exc}")
            raise StorageError() from exc
        return user
