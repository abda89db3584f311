"""
Session tokens and role checks.

Tokens are signed with itsdangerous and carry only the user role.
The secret comes from settings and is injected into TokenIssuer;
route handlers receive a typed Principal instead of raw claims.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from app.pvz_api.db.models import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    role: UserRole


class TokenIssuer:

    def __init__(self, secret: str, salt: str, ttl_seconds: int) -> None:
        self._serializer = URLSafeTimedSerializer(secret, salt=salt)
        self._ttl_seconds = ttl_seconds

    def issue(self, role: UserRole) -> str:
        return self._serializer.dumps({"role": role.value})

    def verify(self, token: str) -> Principal:
        """
        Returns the principal encoded in the token.
        Raises BadSignature (or SignatureExpired) for unusable tokens.
        """
        data = self._serializer.loads(token, max_age=self._ttl_seconds)
        if not isinstance(data, dict) or "role" not in data:
            raise BadSignature("Token payload is incomplete")
        try:
            return Principal(role=UserRole(data["role"]))
        except ValueError as exc:
            raise BadSignature("Unknown role in token") from exc


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


def get_principal(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    auth_x: Optional[str] = Header(None, alias="auth-x"),
) -> Principal:
    """
    Validate the bearer token from either header: Authorization or auth-x.
    """
    provided = authorization or auth_x
    if not provided:
        logger.warning("Request rejected: missing token header (Authorization or auth-x)")
        raise _unauthorized("Токен сформирован неверно")

    scheme, _, token = provided.partition(" ")
    if scheme != "Bearer" or not token.strip():
        logger.warning("Request rejected: malformed token header")
        raise _unauthorized("Токен сформирован неверно")

    issuer: TokenIssuer = request.app.state.token_issuer
    try:
        return issuer.verify(token.strip())
    except SignatureExpired:
        logger.warning("Request rejected: expired token")
        raise _unauthorized("Неверный токен")
    except BadSignature:
        logger.warning("Request rejected: invalid token")
        raise _unauthorized("Неверный токен")


def require_role(role: UserRole) -> Callable[..., Principal]:
    """Dependency factory: the caller must hold exactly this role."""

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role != role:
            logger.warning(f"Forbidden action: role {principal.role.value}, required {role.value}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Доступ запрещен")
        return principal

    return dependency
