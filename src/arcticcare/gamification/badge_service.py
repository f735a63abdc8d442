"""Badge unlock with duplicate prevention, plus badge catalogue queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Badge, User, UserBadge
from arcticcare.gamification.exceptions import ConflictError, InvalidInputError, NotFoundError
from arcticcare.gamification.ledger_service import ContributionType, award, get_user_for_update
from arcticcare.gamification.requirements import parse_requirement
from arcticcare.redis_client import publish_event
from arcticcare.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class UnlockResult:
    badge: Badge
    points_earned: int
    new_total: int
    unlocked_at: datetime


async def get_badge(db: AsyncSession, badge_id: int) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.id == badge_id))
    return result.scalar_one_or_none()


async def get_badge_by_name(db: AsyncSession, name: str) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.name == name))
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    """Check if user already unlocked a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def try_unlock(
    db: AsyncSession,
    redis: object,
    user_id: int,
    badge_id: int,
) -> UnlockResult:
    """Unlock a badge for a user and award its bonus points once.

    Raises:
        NotFoundError: User or badge does not exist.
        ConflictError: The user already has this badge. Nothing is written.
    """
    await get_user_for_update(db, user_id)

    badge = await get_badge(db, badge_id)
    if badge is None:
        msg = "Badge não encontrado"
        raise NotFoundError(msg)

    if await has_badge(db, user_id, badge.id):
        msg = "Badge já desbloqueado"
        raise ConflictError(msg)

    now = utcnow()
    try:
        async with db.begin_nested():
            db.add(UserBadge(user_id=user_id, badge_id=badge.id, unlocked_at=now))
    except IntegrityError:
        # Concurrent unlock won the unique constraint; only the savepoint is undone
        msg = "Badge já desbloqueado"
        raise ConflictError(msg) from None

    new_total = await award(
        db,
        redis,
        user_id,
        ContributionType.BADGE_UNLOCKED,
        badge.points,
        f"Desbloqueou badge: {badge.name}",
    )

    logger.info("User %d unlocked badge %s (+%d)", user_id, badge.name, badge.points)
    await publish_event(
        redis,
        "badge_unlocked",
        {"user_id": user_id, "badge_id": badge.id, "badge_name": badge.name, "points": badge.points},
    )

    return UnlockResult(badge=badge, points_earned=badge.points, new_total=new_total, unlocked_at=now)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


async def create_badge(
    db: AsyncSession,
    name: str,
    description: str,
    icon: str,
    requirement: object,
    points: int,
    category: str | None = None,
) -> Badge:
    """Create a badge definition.

    Raises:
        InvalidInputError: Malformed requirement or negative points.
        ConflictError: A badge with this name already exists.
    """
    parsed = parse_requirement(requirement)
    if points < 0:
        msg = "Pontos não podem ser negativos"
        raise InvalidInputError(msg)
    if await get_badge_by_name(db, name) is not None:
        msg = "Já existe uma badge com este nome"
        raise ConflictError(msg)

    badge = Badge(
        name=name,
        description=description,
        icon=icon,
        requirement=parsed.to_json(),
        points=points,
        category=category or "general",
    )
    db.add(badge)
    await db.flush()
    logger.info("Created badge %s (id %d)", name, badge.id)
    return badge


async def list_badges_by_category(db: AsyncSession) -> tuple[int, dict[str, list[Badge]]]:
    """All badges grouped by category, ordered by category then points."""
    result = await db.execute(select(Badge).order_by(Badge.category.asc(), Badge.points.asc(), Badge.id.asc()))
    badges = result.scalars().all()

    by_category: dict[str, list[Badge]] = {}
    for badge in badges:
        by_category.setdefault(badge.category or "general", []).append(badge)
    return len(badges), by_category


async def get_badge_detail(db: AsyncSession, badge_id: int, recent: int = 10) -> tuple[Badge, int, list]:
    """Badge, total unlock count and the most recent unlocks with their users."""
    badge = await get_badge(db, badge_id)
    if badge is None:
        msg = "Badge não encontrada"
        raise NotFoundError(msg)

    total = await db.execute(select(func.count(UserBadge.id)).where(UserBadge.badge_id == badge_id))
    recent_result = await db.execute(
        select(UserBadge, User)
        .join(User, UserBadge.user_id == User.id)
        .where(UserBadge.badge_id == badge_id)
        .order_by(UserBadge.unlocked_at.desc(), UserBadge.id.desc())
        .limit(recent)
    )
    return badge, total.scalar_one(), list(recent_result)


async def get_user_badges(db: AsyncSession, user_id: int) -> list[UserBadge]:
    """Badges a user has unlocked, newest first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.unlocked_at.desc(), UserBadge.id.desc())
    )
    return list(result.scalars().all())


async def get_badge_overview(db: AsyncSession, user_id: int) -> tuple[int, list[dict]]:
    """Every badge with the user's lock state. Returns (unlocked_count, badges)."""
    unlocked = {ub.badge_id: ub for ub in await get_user_badges(db, user_id)}
    result = await db.execute(select(Badge).order_by(Badge.category.asc(), Badge.points.asc(), Badge.id.asc()))

    overview = []
    for badge in result.scalars():
        ub = unlocked.get(badge.id)
        overview.append({
            "badge": badge,
            "unlocked": ub is not None,
            "unlocked_at": ub.unlocked_at if ub else None,
        })
    return len(unlocked), overview
