from __future__ import annotations

from fastapi import Request

from app.pvz_api.api.auth import TokenIssuer
from app.pvz_api.services.product_service import ProductService
from app.pvz_api.services.pvz_service import PVZService
from app.pvz_api.services.reception_service import ReceptionService
from app.pvz_api.services.user_service import UserService


def get_pvz_service(request: Request) -> PVZService:
    return request.app.state.pvz_service


def get_reception_service(request: Request) -> ReceptionService:
    return request.app.state.reception_service


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer
