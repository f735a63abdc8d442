"""
Authentication business logic.

Handles user creation, credential checks and profile/password updates.
Registration awards the signup bonus through the reward ledger in the same
transaction as the user insert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from arcticcare.auth.password import hash_password, validate_password_strength, verify_password
from arcticcare.config import get_settings
from arcticcare.db.models import User
from arcticcare.gamification.exceptions import ConflictError
from arcticcare.gamification.ledger_service import ContributionType, award
from arcticcare.time_utils import utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class InvalidCredentialsError(ValueError):
    """Email unknown or password mismatch. The message never says which."""


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration and login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    redis: object,
    email: str,
    password: str,
    name: str,
) -> User:
    """
    Register a new user and award the signup bonus.

    Raises:
        PasswordStrengthError: If the password is out of bounds.
        ConflictError: If the email is already registered.
    """
    validate_password_strength(password)

    if await get_user_by_email(db, email) is not None:
        msg = "Email já cadastrado"
        raise ConflictError(msg)

    now = utcnow()
    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password),
        name=name,
        role="user",
        points=0,
        level=1,
        current_streak=0,
        longest_streak=0,
        last_active_at=now,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id, email=user.email)

    await award(
        db,
        redis,
        user.id,
        ContributionType.ACCOUNT_CREATED,
        get_settings().signup_bonus_points,
        "Bem-vindo ao ArcticCare!",
    )
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        InvalidCredentialsError: If credentials are invalid.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed", email=email)
        msg = "Credenciais inválidas"
        raise InvalidCredentialsError(msg)
    return user


# ---------------------------------------------------------------------------
# Account management
# ---------------------------------------------------------------------------


async def update_profile(db: AsyncSession, user: User, name: str | None, avatar: str | None) -> User:
    if name is not None:
        user.name = name.strip()
    if avatar is not None:
        user.avatar = avatar
    user.updated_at = utcnow()
    await db.flush()
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    """
    Replace the user's password after checking the current one.

    Raises:
        InvalidCredentialsError: If the current password is wrong.
        PasswordStrengthError: If the new password is out of bounds.
    """
    if not verify_password(current_password, user.password_hash):
        msg = "Senha atual incorreta"
        raise InvalidCredentialsError(msg)
    validate_password_strength(new_password)
    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    await db.flush()
    logger.info("password_changed", user_id=user.id)
