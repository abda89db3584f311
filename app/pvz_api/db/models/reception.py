from __future__ import annotations

import datetime as dt
import enum
import uuid

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.pvz_api.db.models.base import Base
from app.pvz_api.db.utils import enum_values, utcnow


class ReceptionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    CLOSE = "close"


OPEN_RECEPTION_INDEX = "uq_receptions_pvz_in_progress"


class Reception(Base):
    """
    Приёмка товаров на ПВЗ.

    Статус меняется ровно один раз: in_progress -> close.
    На одном ПВЗ может быть не более одной открытой приёмки,
    это гарантирует частичный уникальный индекс.
    """
    __tablename__ = "receptions"
    __table_args__ = (
        Index(
            OPEN_RECEPTION_INDEX,
            "pvz_id",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
            sqlite_where=text("status = 'in_progress'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date_time: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    pvz_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pvz.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[ReceptionStatus] = mapped_column(
        Enum(ReceptionStatus, values_callable=enum_values, name="receptionstatus"),
        default=ReceptionStatus.IN_PROGRESS,
        nullable=False,
    )

    @property
    def is_open(self) -> bool:
        return self.status == ReceptionStatus.IN_PROGRESS

    def __repr__(self) -> str:
        return f"<Reception {self.id} pvz={self.pvz_id} {self.status.value}>"
