"""FastAPI authentication dependencies.

Each dependency resolves the bearer token to a ``User`` row; routers pass
``user.id`` on to services explicitly.
"""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.jwt import verify_token
from arcticcare.auth.service import get_user_by_id
from arcticcare.database import get_session
from arcticcare.db.models import User

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> User:
    try:
        payload = verify_token(token, expected_type="access")
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Token inválido") from e

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Usuário não encontrado")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the JWT, return the User model.

    Raises 401 on a missing, invalid or orphaned token.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Token não fornecido")
    return await _resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Same as get_current_user but anonymous callers (or bad tokens) yield None."""
    if credentials is None:
        return None
    try:
        return await _resolve_user(credentials.credentials, db)
    except HTTPException:
        return None


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only users with the admin role."""
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Acesso negado: requer privilégios de administrador")
    return user
