"""User ranking by points with a deterministic tie-break.

Total order: points DESC, created_at ASC, id ASC. The paginated list and the
single-user rank use the same order, so a user's rank always equals their
position in the full list.

The monthly view ranks by points earned from contributions created since the
first instant (UTC) of the current month. Users without contributions in the
window are left out.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Comment, Contribution, Issue, User
from arcticcare.gamification.exceptions import NotFoundError
from arcticcare.time_utils import start_of_month, utcnow

RANKING_TYPES = ("global", "monthly")
MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


@dataclass
class RankedUser:
    rank: int
    user: User
    points: int
    issues_reported: int
    comments: int
    contributions: int


def _activity_columns() -> list[Any]:
    """Correlated per-user counts used by every ranking listing."""
    issues = (
        select(func.count(Issue.id)).where(Issue.user_id == User.id).correlate(User).scalar_subquery()
    )
    comments = (
        select(func.count(Comment.id)).where(Comment.user_id == User.id).correlate(User).scalar_subquery()
    )
    contributions = (
        select(func.count(Contribution.id))
        .where(Contribution.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    return [issues.label("issues"), comments.label("comments"), contributions.label("contributions")]


def _monthly_points(since: datetime):  # noqa: ANN202
    return (
        select(
            Contribution.user_id.label("user_id"),
            func.sum(Contribution.points).label("points"),
        )
        .where(Contribution.created_at >= since)
        .group_by(Contribution.user_id)
        .subquery("monthly")
    )


async def rank(
    db: AsyncSession,
    windowed: bool = False,
    page: int = 1,
    limit: int = 50,
    now: datetime | None = None,
) -> tuple[list[RankedUser], int]:
    """One page of the ranking. Returns (entries, total ranked users)."""
    offset = (page - 1) * limit
    if now is None:
        now = utcnow()

    if windowed:
        monthly = _monthly_points(start_of_month(now))
        points_col = monthly.c.points
        query = select(User, points_col.label("ranked_points"), *_activity_columns()).join(
            monthly, monthly.c.user_id == User.id
        )
    else:
        points_col = User.points
        query = select(User, User.points.label("ranked_points"), *_activity_columns())

    query = query.order_by(points_col.desc(), User.created_at.asc(), User.id.asc()).offset(offset).limit(limit)

    result = await db.execute(query)
    entries = [
        RankedUser(
            rank=offset + index + 1,
            user=row.User,
            points=int(row.ranked_points or 0),
            issues_reported=row.issues,
            comments=row.comments,
            contributions=row.contributions,
        )
        for index, row in enumerate(result)
    ]
    total = await count_ranked(db, windowed, now)
    return entries, total


async def top(db: AsyncSession, limit: int = 10) -> list[RankedUser]:
    entries, _ = await rank(db, windowed=False, page=1, limit=limit)
    return entries


async def user_rank(
    db: AsyncSession,
    user_id: int,
    windowed: bool = False,
    now: datetime | None = None,
) -> int | None:
    """1-based position of a user under the same order as rank().

    Returns None for the monthly view when the user earned nothing this month.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        msg = "Usuário não encontrado"
        raise NotFoundError(msg)

    if windowed:
        monthly = _monthly_points(start_of_month(now or utcnow()))
        own = await db.execute(select(monthly.c.points).where(monthly.c.user_id == user_id))
        own_points = own.scalar_one_or_none()
        if own_points is None:
            return None
        points_col = monthly.c.points
        base = select(func.count()).select_from(monthly).join(User, monthly.c.user_id == User.id)
    else:
        own_points = user.points
        points_col = User.points
        base = select(func.count(User.id))

    ahead = await db.execute(
        base.where(
            or_(
                points_col > own_points,
                and_(
                    points_col == own_points,
                    or_(
                        User.created_at < user.created_at,
                        and_(User.created_at == user.created_at, User.id < user.id),
                    ),
                ),
            )
        )
    )
    return ahead.scalar_one() + 1


async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(User.id)))).scalar_one()


async def count_ranked(db: AsyncSession, windowed: bool = False, now: datetime | None = None) -> int:
    """Number of users appearing in the given ranking view."""
    if not windowed:
        return await count_users(db)
    monthly = _monthly_points(start_of_month(now or utcnow()))
    return (await db.execute(select(func.count()).select_from(monthly))).scalar_one()


def percentile(position: int, total: int) -> float:
    """Share of users at or below this position, one decimal."""
    if total <= 0:
        return 0.0
    return round((1 - (position - 1) / total) * 100, 1)
