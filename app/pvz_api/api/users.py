from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.pvz_api.api.auth import TokenIssuer
from app.pvz_api.api.dependencies import get_token_issuer, get_user_service
from app.pvz_api.api.errors import ERROR_RESPONSES
from app.pvz_api.api.schemas import (
    DummyLoginRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from app.pvz_api.db.models import UserRole
from app.pvz_api.services.user_service import UserService
from app.pvz_api.services.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"], responses=ERROR_RESPONSES)


@router.post("/dummyLogin", response_model=TokenResponse)
async def dummy_login(
    body: DummyLoginRequest,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    """Issue a token for the requested role without credentials."""
    try:
        role = UserRole(body.role)
    except ValueError:
        logger.warning(f"Dummy login rejected: invalid role {body.role!r}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Неверный запрос")
    return TokenResponse(token=issuer.issue(role))


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    service: UserService = Depends(get_user_service),
) -> UserOut:
    user = await service.register(body.email, body.password, body.role)
    return UserOut.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    service: UserService = Depends(get_user_service),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    email = validate_email(body.email)
    user = await service.login(email, body.password)
    return TokenResponse(token=issuer.issue(user.role))
