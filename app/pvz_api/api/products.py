from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.pvz_api.api.auth import Principal, require_role
from app.pvz_api.api.dependencies import get_product_service
from app.pvz_api.api.errors import ERROR_RESPONSES
from app.pvz_api.api.schemas import AddProductRequest, ProductOut
from app.pvz_api.db.models import UserRole
from app.pvz_api.services.product_service import ProductService

router = APIRouter(tags=["products"], responses=ERROR_RESPONSES)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def add_product(
    body: AddProductRequest,
    _: Principal = Depends(require_role(UserRole.EMPLOYEE)),
    service: ProductService = Depends(get_product_service),
) -> ProductOut:
    product = await service.add_product(body.type, body.pvz_id)
    return ProductOut.model_validate(product)
