from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.pvz_api.api.auth import Principal, require_role
from app.pvz_api.api.dependencies import get_reception_service
from app.pvz_api.api.errors import ERROR_RESPONSES
from app.pvz_api.api.schemas import CreateReceptionRequest, ReceptionOut
from app.pvz_api.db.models import UserRole
from app.pvz_api.services.reception_service import ReceptionService

router = APIRouter(tags=["receptions"], responses=ERROR_RESPONSES)


@router.post("/receptions", response_model=ReceptionOut, status_code=status.HTTP_201_CREATED)
async def create_reception(
    body: CreateReceptionRequest,
    _: Principal = Depends(require_role(UserRole.EMPLOYEE)),
    service: ReceptionService = Depends(get_reception_service),
) -> ReceptionOut:
    reception = await service.create_reception(body.pvz_id)
    return ReceptionOut.model_validate(reception)
