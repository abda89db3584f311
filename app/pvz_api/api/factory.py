from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.pvz_api.api import products, pvz, receptions, users
from app.pvz_api.api.auth import TokenIssuer
from app.pvz_api.api.errors import register_error_handlers
from app.pvz_api.api.middleware import setup_request_timing
from app.pvz_api.db.models import Base
from app.pvz_api.db.repo import (
    ProductRepository,
    PVZRepository,
    ReceptionRepository,
    UserRepository,
)
from app.pvz_api.db.session import create_engine_from_settings, create_session_factory
from app.pvz_api.services.locks import PickupPointLocks
from app.pvz_api.services.product_service import ProductService
from app.pvz_api.services.pvz_service import PVZService
from app.pvz_api.services.reception_service import ReceptionService
from app.pvz_api.services.user_service import UserService
from app.pvz_api.settings import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Собирает приложение: движок БД, репозитории, сервисы, роуты.
    """
    settings = settings or Settings()
    engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)

    pvz_repo = PVZRepository()
    reception_repo = ReceptionRepository()
    product_repo = ProductRepository()
    user_repo = UserRepository()
    locks = PickupPointLocks()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.CREATE_SCHEMA:
            logger.info("Creating database schema...")
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        yield
        logger.info("Shutting down...")
        await engine.dispose()

    app = FastAPI(title="PVZ API", version="1.0.0", lifespan=lifespan)

    app.state.token_issuer = TokenIssuer(
        settings.AUTH_SECRET, settings.AUTH_SALT, settings.TOKEN_TTL_SECONDS
    )
    app.state.pvz_service = PVZService(
        session_factory, pvz_repo, reception_repo, product_repo, locks
    )
    app.state.reception_service = ReceptionService(session_factory, pvz_repo, reception_repo, locks)
    app.state.product_service = ProductService(
        session_factory, product_repo, reception_repo, pvz_repo, locks
    )
    app.state.user_service = UserService(session_factory, user_repo)

    register_error_handlers(app)
    setup_request_timing(app, settings.SLOW_REQUEST_SECONDS)

    app.include_router(users.router)
    app.include_router(pvz.router)
    app.include_router(receptions.router)
    app.include_router(products.router)
    return app
