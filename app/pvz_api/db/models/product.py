from __future__ import annotations

import datetime as dt
import enum
import uuid

from sqlalchemy import DateTime, Enum, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.pvz_api.db.models.base import Base
from app.pvz_api.db.utils import enum_values, utcnow


class ProductType(str, enum.Enum):
    ELECTRONICS = "электроника"
    CLOTHES = "одежда"
    SHOES = "обувь"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date_time: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    type: Mapped[ProductType] = mapped_column(
        Enum(ProductType, values_callable=enum_values, name="producttype"),
        nullable=False,
    )
    reception_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("receptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.type.value} reception={self.reception_id}>"
