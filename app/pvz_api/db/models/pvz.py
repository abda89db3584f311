from __future__ import annotations

import datetime as dt
import enum
import uuid

from sqlalchemy import DateTime, Enum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.pvz_api.db.models.base import Base
from app.pvz_api.db.utils import enum_values, utcnow


class City(str, enum.Enum):
    MOSCOW = "Москва"
    SAINT_PETERSBURG = "Санкт-Петербург"
    KAZAN = "Казань"


class PVZ(Base):
    """
    Пункт выдачи заказов (ПВЗ).

    Поля:
    - id: уникальный идентификатор, генерируется приложением
    - registration_date: дата регистрации, не меняется после создания
    - city: один из разрешённых городов
    """
    __tablename__ = "pvz"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    registration_date: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    city: Mapped[City] = mapped_column(
        Enum(City, values_callable=enum_values, name="city"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PVZ {self.id} {self.city.value}>"
