"""Daily activity streaks: the touch state machine and the read-only liveness view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import User
from arcticcare.gamification.ledger_service import ContributionType, award, get_user_for_update
from arcticcare.redis_client import publish_event
from arcticcare.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
BONUS_EVERY_DAYS = 7
DEFAULT_GRACE = timedelta(hours=48)

STREAK_MILESTONES: list[dict] = [
    {"days": 7, "reward": "🔥 Semana de Fogo"},
    {"days": 14, "reward": "⚡ Duas Semanas"},
    {"days": 30, "reward": "🏆 Mês Completo"},
    {"days": 60, "reward": "💎 Dois Meses"},
    {"days": 90, "reward": "👑 Trimestre"},
    {"days": 180, "reward": "🌟 Meio Ano"},
    {"days": 365, "reward": "🎖️ Um Ano"},
]
FINAL_MILESTONE = {"days": 365 * 2, "reward": "🏅 Dois Anos"}


@dataclass
class StreakUpdate:
    current_streak: int
    longest_streak: int
    last_active_at: datetime
    streak_broken: bool
    bonus_points: int = 0


def days_since(last_active_at: datetime, now: datetime) -> int:
    """Whole 24-hour periods elapsed. A clock running backwards counts as zero."""
    elapsed = as_utc(now) - as_utc(last_active_at)
    return max(elapsed // ONE_DAY, 0)


def next_streak(current: int, days: int) -> tuple[int, bool]:
    """Apply one touch to a streak counter. Returns (new_streak, broken).

    Same period keeps the counter (a zero streak stays zero), the next period
    extends it, a longer gap restarts at 1.
    """
    if days == 0:
        return current, False
    if days == 1:
        return current + 1, False
    return 1, True


def streak_bonus(previous: int, new: int) -> int:
    """Bonus points for reaching a multiple of seven days (the new length)."""
    if new > previous and new % BONUS_EVERY_DAYS == 0:
        return new
    return 0


async def touch(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
) -> StreakUpdate:
    """Record activity for a user at ``now``.

    Updates current/longest streak and last_active_at, and awards a
    ``streak_bonus`` contribution through the ledger on weekly multiples.

    Raises:
        NotFoundError: If the user does not exist.
    """
    if now is None:
        now = utcnow()

    user = await get_user_for_update(db, user_id)
    previous = user.current_streak
    new, broken = next_streak(previous, days_since(user.last_active_at, now))

    user.current_streak = new
    user.longest_streak = max(user.longest_streak, new)
    user.last_active_at = now
    await db.flush()

    bonus = streak_bonus(previous, new)
    if bonus:
        await award(
            db,
            redis,
            user_id,
            ContributionType.STREAK_BONUS,
            bonus,
            f"Streak de {new} dias!",
        )

    logger.info("Streak for user %d: %d -> %d (broken=%s, bonus=%d)", user_id, previous, new, broken, bonus)
    if broken or bonus:
        await publish_event(
            redis,
            "streak_update",
            {
                "user_id": user_id,
                "event": "streak_broken" if broken else "streak_bonus",
                "previous": previous,
                "current": new,
                "bonus_points": bonus,
            },
        )

    return StreakUpdate(
        current_streak=user.current_streak,
        longest_streak=user.longest_streak,
        last_active_at=now,
        streak_broken=broken,
        bonus_points=bonus,
    )


def is_active(user: User, now: datetime | None = None, grace: timedelta = DEFAULT_GRACE) -> bool:
    """True while the last activity is within the grace window."""
    if now is None:
        now = utcnow()
    return as_utc(now) - as_utc(user.last_active_at) <= grace


def displayed_streak(user: User, now: datetime | None = None, grace: timedelta = DEFAULT_GRACE) -> int:
    """Streak shown to clients: zero once the grace window has lapsed. Never writes."""
    return user.current_streak if is_active(user, now, grace) else 0


def next_milestone(current_streak: int) -> dict:
    """First milestone strictly above the current streak."""
    for milestone in STREAK_MILESTONES:
        if current_streak < milestone["days"]:
            return dict(milestone)
    return dict(FINAL_MILESTONE)
