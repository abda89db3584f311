from __future__ import annotations

import logging
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from app.pvz_api.db.interfaces import IUserRepository
from app.pvz_api.db.models import User, UserRole
from app.pvz_api.db.session import transaction
from app.pvz_api.services.errors import InvalidCredentials, UserAlreadyExists
from app.pvz_api.services.validators import parse_role, validate_email

logger = logging.getLogger(__name__)


class UserService:
    """
    Регистрация и вход пользователей.

    Пароли хранятся только в виде солёного хэша (scrypt через werkzeug).
    Токен сессии сервис не выдаёт, это делает транспортный слой по роли
    возвращённого пользователя.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        user_repo: IUserRepository,
    ) -> None:
        self._session_factory = session_factory
        self._user_repo = user_repo

    async def register(self, email: str, password: str, role: Union[str, UserRole]) -> User:
        email = validate_email(email)
        role = parse_role(role)
        password_hash = generate_password_hash(password)

        async with transaction(self._session_factory) as session:
            existing = await self._user_repo.get_by_email(session, email)
            if existing is not None:
                logger.warning(f"Registration rejected, user exists: {email}")
                raise UserAlreadyExists()
            user = await self._user_repo.create(session, email, password_hash, role)
        logger.info(f"User registered: {user.id} ({role.value})")
        return user

    async def login(self, email: str, password: str) -> User:
        async with transaction(self._session_factory) as session:
            user = await self._user_repo.get_by_email(session, (email or "").strip())
        if user is None or not check_password_hash(user.password_hash, password):
            logger.warning(f"Login failed for {email}")
            raise InvalidCredentials()
        return user
