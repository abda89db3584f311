from __future__ import annotations

import datetime as dt
import re
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.pvz_api.db.models import City, ProductType, ReceptionStatus, UserRole
from app.pvz_api.db.utils import as_utc


class ErrorResponse(BaseModel):
    message: str


class _Entity(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PVZOut(_Entity):
    id: uuid.UUID
    registration_date: dt.datetime = Field(alias="registrationDate")
    city: City

    @field_validator("registration_date")
    @classmethod
    def to_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class ReceptionOut(_Entity):
    id: uuid.UUID
    date_time: dt.datetime = Field(alias="dateTime")
    pvz_id: uuid.UUID = Field(alias="pvzId")
    status: ReceptionStatus

    @field_validator("date_time")
    @classmethod
    def to_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class ProductOut(_Entity):
    id: uuid.UUID
    date_time: dt.datetime = Field(alias="dateTime")
    type: ProductType
    reception_id: uuid.UUID = Field(alias="receptionId")

    @field_validator("date_time")
    @classmethod
    def to_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class ReceptionWithProductsOut(_Entity):
    reception: ReceptionOut
    products: List[ProductOut]


class PVZWithReceptionsOut(_Entity):
    pvz: PVZOut
    receptions: List[ReceptionWithProductsOut]


class CreatePVZRequest(BaseModel):
    city: str


class CreateReceptionRequest(BaseModel):
    pvz_id: str = Field(alias="pvzId")


class AddProductRequest(BaseModel):
    type: str
    pvz_id: str = Field(alias="pvzId")


class DummyLoginRequest(BaseModel):
    role: str


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)
    role: str


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str


class UserOut(_Entity):
    id: uuid.UUID
    email: str
    role: UserRole


RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))"
)


def parse_rfc3339(value: Optional[str]) -> Optional[dt.datetime]:
    """
    Разбирает дату строго в формате RFC 3339 и приводит её к UTC.

    Смещение обязательно: "Z" или "+hh:mm". Дата без времени или время
    без смещения дают ValueError.
    """
    if not value:
        return None
    match = RFC3339_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
    year, month, day, hour, minute, second, fraction, zulu, sign, off_h, off_m = match.groups()
    if zulu:
        tz = dt.timezone.utc
    else:
        offset = dt.timedelta(hours=int(off_h), minutes=int(off_m))
        tz = dt.timezone(-offset if sign == "-" else offset)
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    parsed = dt.datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz
    )
    return as_utc(parsed)
