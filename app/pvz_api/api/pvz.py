"""
PVZ endpoints.

- POST /pvz: create a pickup point (moderator)
- GET /pvz: paginated pickup points with receptions and products
- GET /pvz/all: every pickup point without nested data
- POST /pvz/{pvzId}/close_last_reception: close the open reception (employee)
- POST /pvz/{pvzId}/delete_last_product: remove the newest product (employee)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.pvz_api.api.auth import Principal, get_principal, require_role
from app.pvz_api.api.dependencies import get_pvz_service
from app.pvz_api.api.errors import ERROR_RESPONSES
from app.pvz_api.api.schemas import (
    CreatePVZRequest,
    ProductOut,
    PVZOut,
    PVZWithReceptionsOut,
    ReceptionOut,
    ReceptionWithProductsOut,
    parse_rfc3339,
)
from app.pvz_api.db.models import UserRole
from app.pvz_api.services.pvz_service import DEFAULT_LIMIT, DEFAULT_PAGE, PVZService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pvz", tags=["pvz"], responses=ERROR_RESPONSES)

DATE_FORMAT_MESSAGE = (
    "Неверный формат даты. Используйте формат RFC3339: 2025-04-11T18:57:00+03:00"
)


@router.post("", response_model=PVZOut, status_code=status.HTTP_201_CREATED)
async def create_pvz(
    body: CreatePVZRequest,
    _: Principal = Depends(require_role(UserRole.MODERATOR)),
    service: PVZService = Depends(get_pvz_service),
) -> PVZOut:
    pvz = await service.create_pvz(body.city)
    return PVZOut.model_validate(pvz)


@router.get("", response_model=List[PVZWithReceptionsOut])
async def list_pvz(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(DEFAULT_PAGE),
    limit: int = Query(DEFAULT_LIMIT),
    _: Principal = Depends(get_principal),
    service: PVZService = Depends(get_pvz_service),
) -> List[PVZWithReceptionsOut]:
    try:
        start = parse_rfc3339(start_date)
        end = parse_rfc3339(end_date)
    except ValueError:
        logger.warning(f"Invalid date filter: startDate={start_date!r} endDate={end_date!r}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DATE_FORMAT_MESSAGE)

    items = await service.list_with_receptions(start, end, page, limit)
    return [
        PVZWithReceptionsOut(
            pvz=PVZOut.model_validate(item.pvz),
            receptions=[
                ReceptionWithProductsOut(
                    reception=ReceptionOut.model_validate(rec.reception),
                    products=[ProductOut.model_validate(p) for p in rec.products],
                )
                for rec in item.receptions
            ],
        )
        for item in items
    ]


@router.get("/all", response_model=List[PVZOut])
async def list_all_pvz(
    _: Principal = Depends(get_principal),
    service: PVZService = Depends(get_pvz_service),
) -> List[PVZOut]:
    return [PVZOut.model_validate(p) for p in await service.list_all_pvz()]


@router.post("/{pvz_id}/close_last_reception", response_model=ReceptionOut)
async def close_last_reception(
    pvz_id: str,
    _: Principal = Depends(require_role(UserRole.EMPLOYEE)),
    service: PVZService = Depends(get_pvz_service),
) -> ReceptionOut:
    reception = await service.close_last_reception(pvz_id)
    return ReceptionOut.model_validate(reception)


@router.post("/{pvz_id}/delete_last_product")
async def delete_last_product(
    pvz_id: str,
    _: Principal = Depends(require_role(UserRole.EMPLOYEE)),
    service: PVZService = Depends(get_pvz_service),
) -> Response:
    await service.delete_last_product(pvz_id)
    return Response(status_code=status.HTTP_200_OK)
