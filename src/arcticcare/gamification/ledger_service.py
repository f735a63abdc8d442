"""Reward ledger: append-only contributions plus the cached point balance.

``award`` appends the ledger row and bumps ``users.points``/``users.level``
inside the caller's transaction. Nothing here commits; the router commits
once per request so both writes land together or not at all.
"""

from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Contribution, User
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.gamification.levels import level_of
from arcticcare.redis_client import publish_event
from arcticcare.time_utils import utcnow

logger = logging.getLogger(__name__)


class ContributionType(str, Enum):
    ISSUE_REPORTED = "issue_reported"
    ISSUE_CONFIRMED = "issue_confirmed"
    COMMENT = "comment"
    DATA_SUBMITTED = "data_submitted"
    ACCOUNT_CREATED = "account_created"
    AI_ANALYSIS = "ai_analysis"
    BADGE_UNLOCKED = "badge_unlocked"
    STREAK_BONUS = "streak_bonus"
    ISSUE_RESOLVED = "issue_resolved"


def parse_contribution_type(value: str | ContributionType) -> ContributionType:
    """Validate a contribution type name."""
    if isinstance(value, ContributionType):
        return value
    try:
        return ContributionType(value)
    except ValueError:
        msg = f"Tipo de contribuição inválido: {value}"
        raise InvalidInputError(msg) from None


def _validate_points(points: object) -> int:
    if isinstance(points, bool) or not isinstance(points, int):
        msg = "Pontos devem ser um número inteiro"
        raise InvalidInputError(msg)
    if points < 0:
        msg = "Pontos não podem ser negativos"
        raise InvalidInputError(msg)
    return points


async def get_user_for_update(db: AsyncSession, user_id: int) -> User:
    """Load a user row locked for the rest of the transaction.

    Raises:
        NotFoundError: If the user does not exist.
    """
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        msg = "Usuário não encontrado"
        raise NotFoundError(msg)
    return user


async def award(
    db: AsyncSession,
    redis: object,
    user_id: int,
    type: str | ContributionType,  # noqa: A002
    points: int,
    description: str,
    issue_id: int | None = None,
) -> int:
    """Record a rewarded action and return the user's new point total.

    Validation happens before any write, so a rejected call leaves no ledger
    row behind. The level is recomputed from the new total on every award.
    """
    kind = parse_contribution_type(type)
    amount = _validate_points(points)
    user = await get_user_for_update(db, user_id)

    now = utcnow()
    db.add(
        Contribution(
            user_id=user.id,
            type=kind.value,
            points=amount,
            description=description,
            created_at=now,
            issue_id=issue_id,
        )
    )

    old_level = user.level
    user.points += amount
    user.level = level_of(user.points)
    user.updated_at = now
    await db.flush()

    logger.info("Recorded %s +%d for user %d (total %d)", kind.value, amount, user.id, user.points)

    if user.level > old_level:
        logger.info("User %d leveled up: %d -> %d", user.id, old_level, user.level)
        await publish_event(
            redis, "level_up", {"user_id": user.id, "old_level": old_level, "new_level": user.level}
        )

    return user.points


# ---------------------------------------------------------------------------
# Ledger reads
# ---------------------------------------------------------------------------


async def ledger_total(db: AsyncSession, user_id: int) -> int:
    """Sum of all contribution points for a user (the source of truth)."""
    result = await db.execute(
        select(func.coalesce(func.sum(Contribution.points), 0)).where(Contribution.user_id == user_id)
    )
    return int(result.scalar_one())


async def recompute_points(db: AsyncSession, user_id: int) -> int:
    """Rebuild the cached balance and level from the ledger. Returns the total."""
    user = await get_user_for_update(db, user_id)
    total = await ledger_total(db, user_id)
    if total != user.points:
        logger.warning("Repaired points for user %d: cached %d, ledger %d", user_id, user.points, total)
    user.points = total
    user.level = level_of(total)
    await db.flush()
    return total


async def list_contributions(
    db: AsyncSession,
    user_id: int,
    limit: int = 50,
    type: str | None = None,  # noqa: A002
) -> list[Contribution]:
    """Latest ledger entries for a user, newest first."""
    query = select(Contribution).where(Contribution.user_id == user_id)
    if type is not None:
        query = query.where(Contribution.type == parse_contribution_type(type).value)
    query = query.order_by(Contribution.created_at.desc(), Contribution.id.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def summarize_by_type(db: AsyncSession, user_id: int) -> list[dict]:
    """Count and point sum per contribution type."""
    result = await db.execute(
        select(
            Contribution.type,
            func.count(Contribution.id).label("count"),
            func.coalesce(func.sum(Contribution.points), 0).label("points"),
        )
        .where(Contribution.user_id == user_id)
        .group_by(Contribution.type)
        .order_by(Contribution.type)
    )
    return [{"type": row.type, "count": row.count, "points": int(row.points)} for row in result]


async def has_issue_reward(
    db: AsyncSession,
    user_id: int,
    type: str | ContributionType,  # noqa: A002
    issue_id: int,
) -> bool:
    """Whether this user was already rewarded with ``type`` for this issue."""
    result = await db.execute(
        select(Contribution.id)
        .where(
            Contribution.user_id == user_id,
            Contribution.type == parse_contribution_type(type).value,
            Contribution.issue_id == issue_id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None
