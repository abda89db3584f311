from __future__ import annotations

import datetime as dt
import enum
from typing import List, Optional, Type


def enum_values(enum_cls: Type[enum.Enum]) -> List[str]:
    """
    Значения перечисления для хранения в БД (вместо имён членов).
    """
    return [member.value for member in enum_cls]


def utcnow() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


def as_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """
    Приводит дату к UTC. Наивные значения (SQLite) считаются UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)
