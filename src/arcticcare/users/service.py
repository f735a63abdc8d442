"""User profile, points, streak and impact read models plus admin point awards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from arcticcare.db.models import Comment, Contribution, Issue, User, UserBadge, Vote
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.gamification.ledger_service import award, parse_contribution_type
from arcticcare.gamification.trigger_engine import TriggerEngine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Per reported issue
CO2_KG_PER_ISSUE = 2.5
TREES_PER_ISSUE = 0.1
WATER_LITERS_PER_ISSUE = 50
WASTE_KG_PER_ISSUE = 5


@dataclass
class UserCounts:
    issues: int
    comments: int
    votes: int
    contributions: int
    badges: int
    resolved_issues: int


async def get_user(db: AsyncSession, user_id: int) -> User:
    """
    Raises:
        NotFoundError: If the user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "Usuário não encontrado"
        raise NotFoundError(msg)
    return user


async def get_counts(db: AsyncSession, user_id: int) -> UserCounts:
    """Activity counters for profile and stats blocks, in one round trip."""

    def count(column, *where):  # noqa: ANN001, ANN202
        return select(func.count(column)).where(*where).scalar_subquery()

    result = await db.execute(
        select(
            count(Issue.id, Issue.user_id == user_id),
            count(Comment.id, Comment.user_id == user_id),
            count(Vote.id, Vote.user_id == user_id),
            count(Contribution.id, Contribution.user_id == user_id),
            count(UserBadge.id, UserBadge.user_id == user_id),
            count(Issue.id, Issue.user_id == user_id, Issue.status == "resolved"),
        )
    )
    issues, comments, votes, contributions, badges, resolved = result.one()
    return UserCounts(
        issues=issues,
        comments=comments,
        votes=votes,
        contributions=contributions,
        badges=badges,
        resolved_issues=resolved,
    )


async def recent_issues(db: AsyncSession, user_id: int, limit: int = 5) -> list[Issue]:
    result = await db.execute(
        select(Issue)
        .where(Issue.user_id == user_id)
        .order_by(Issue.reported_at.desc(), Issue.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def compute_impact(counts: UserCounts) -> dict[str, dict]:
    """Environmental impact estimates derived from reported and resolved issues."""
    return {
        "co2Saved": {
            "value": round(counts.issues * CO2_KG_PER_ISSUE, 2),
            "unit": "kg",
            "description": "CO₂ economizado",
        },
        "treesEquivalent": {
            "value": round(counts.issues * TREES_PER_ISSUE, 2),
            "unit": "árvores",
            "description": "Equivalente em árvores plantadas",
        },
        "waterSaved": {
            "value": counts.issues * WATER_LITERS_PER_ISSUE,
            "unit": "litros",
            "description": "Água preservada",
        },
        "wasteReported": {
            "value": counts.issues * WASTE_KG_PER_ISSUE,
            "unit": "kg",
            "description": "Resíduos reportados",
        },
        "areasProtected": {
            "value": counts.resolved_issues,
            "unit": "áreas",
            "description": "Áreas protegidas",
        },
    }


async def admin_award_points(
    db: AsyncSession,
    redis: object,
    user_id: int,
    points: int | None,
    type: str,  # noqa: A002
    description: str | None = None,
    action: str = "add",
) -> tuple[User, bool]:
    """
    Manually award points through the ledger. Returns (user, leveled_up).

    Only ``action="add"``: overwriting the balance would leave it out of step
    with the ledger sum.

    Raises:
        InvalidInputError: Missing points, unknown type or unsupported action.
        NotFoundError: If the user does not exist.
    """
    if action != "add":
        msg = "Ação não suportada: apenas 'add' é permitido"
        raise InvalidInputError(msg)
    if points is None:
        msg = "Pontos são obrigatórios"
        raise InvalidInputError(msg)
    kind = parse_contribution_type(type)

    user = await get_user(db, user_id)
    old_level = user.level
    await award(db, redis, user_id, kind, points, description or "Ajuste manual de pontos")
    await TriggerEngine(db, redis).evaluate(user_id)

    logger.info("points_awarded_by_admin", user_id=user_id, points=points, type=kind.value)
    return user, user.level > old_level
