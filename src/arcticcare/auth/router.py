"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user
from arcticcare.auth.jwt import create_access_token
from arcticcare.auth.password import PasswordStrengthError
from arcticcare.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from arcticcare.auth.service import (
    InvalidCredentialsError,
    authenticate_user,
    change_password,
    register_user,
    update_profile,
)
from arcticcare.config import get_settings
from arcticcare.database import get_session
from arcticcare.db.models import User
from arcticcare.redis_client import get_optional_redis

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _auth_response(user: User, message: str) -> AuthResponse:
    settings = get_settings()
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> AuthResponse:
    """Register with email + password + name."""
    try:
        user = await register_user(db, redis, email=body.email, password=body.password, name=body.name)
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await db.commit()
    return _auth_response(user, "Usuário criado com sucesso")


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Login with email + password."""
    try:
        user = await authenticate_user(db, body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return _auth_response(user, "Login realizado com sucesso")


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)) -> dict[str, str]:
    """Tokens are stateless; the client discards its copy."""
    return {"message": "Logout realizado com sucesso"}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    user = await update_profile(db, user, body.name, body.avatar)
    await db.commit()
    return UserResponse.model_validate(user)


@router.put("/password")
async def update_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    try:
        await change_password(db, user, body.current_password, body.new_password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return {"message": "Senha alterada com sucesso"}
