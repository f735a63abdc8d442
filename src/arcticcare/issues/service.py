"""Issue reports, votes and comments, with their point rewards.

Every rewarded action appends to the ledger and then runs the badge trigger
engine for the counter it touched. Nothing here commits.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, func, or_, select, update

from arcticcare.config import get_settings
from arcticcare.db.models import Comment, Contribution, Issue, User, Vote
from arcticcare.gamification.exceptions import ConflictError, InvalidInputError, NotFoundError
from arcticcare.gamification.ledger_service import ContributionType, award, has_issue_reward
from arcticcare.gamification.requirements import RequirementKind
from arcticcare.gamification.trigger_engine import TriggerEngine
from arcticcare.time_utils import utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

CATEGORIES = ("flood", "fire", "pollution", "deforestation", "waste", "other")
SEVERITIES = ("low", "medium", "high", "critical")
STATUSES = ("open", "investigating", "resolved")
ACTIVE_STATUSES = ("open", "investigating")
VOTE_TYPES = ("upvote", "confirm")

REPORT_POINTS = {"critical": 50, "high": 30}
DEFAULT_REPORT_POINTS = 20

KM_PER_DEGREE = 111

SORT_COLUMNS = {
    "reportedAt": Issue.reported_at,
    "updatedAt": Issue.updated_at,
    "severity": Issue.severity,
    "category": Issue.category,
    "status": Issue.status,
    "title": Issue.title,
}


class PermissionDeniedError(Exception):
    """Caller is neither the owner nor an admin."""


@dataclass
class IssueFilters:
    category: str | None = None
    severity: str | None = None
    status: str | None = None
    region: str | None = None
    search: str | None = None


@dataclass
class VoteCounts:
    upvotes: int = 0
    confirms: int = 0
    comments: int = 0


def report_points(severity: str) -> int:
    """Reward for reporting an issue: critical 50, high 30, otherwise 20."""
    return REPORT_POINTS.get(severity, DEFAULT_REPORT_POINTS)


def _check_choice(value: str | None, choices: tuple[str, ...], message: str) -> None:
    if value is not None and value not in choices:
        raise InvalidInputError(message)


def _ensure_owner_or_admin(issue_owner_id: int, user: User, message: str) -> None:
    if issue_owner_id != user.id and user.role != "admin":
        raise PermissionDeniedError(message)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_issue(db: AsyncSession, issue_id: int) -> Issue:
    result = await db.execute(select(Issue).where(Issue.id == issue_id))
    issue = result.scalar_one_or_none()
    if issue is None:
        msg = "Ocorrência não encontrada"
        raise NotFoundError(msg)
    return issue


async def list_issues(
    db: AsyncSession,
    filters: IssueFilters,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "reportedAt",
    order: str = "desc",
) -> tuple[list[Issue], int]:
    """One page of issues matching the filters. Returns (issues, total)."""
    column = SORT_COLUMNS.get(sort_by)
    if column is None:
        msg = f"Campo de ordenação inválido: {sort_by}"
        raise InvalidInputError(msg)
    if order not in ("asc", "desc"):
        msg = "Ordem inválida (use asc ou desc)"
        raise InvalidInputError(msg)

    conditions: list[Any] = []
    if filters.category:
        conditions.append(Issue.category == filters.category)
    if filters.severity:
        conditions.append(Issue.severity == filters.severity)
    if filters.status:
        conditions.append(Issue.status == filters.status)
    if filters.region:
        conditions.append(Issue.region.contains(filters.region))
    if filters.search:
        conditions.append(
            or_(
                Issue.title.contains(filters.search),
                Issue.description.contains(filters.search),
                Issue.address.contains(filters.search),
            )
        )

    ordering = column.asc() if order == "asc" else column.desc()
    result = await db.execute(
        select(Issue)
        .where(*conditions)
        .order_by(ordering, Issue.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await db.execute(select(func.count(Issue.id)).where(*conditions))
    return list(result.scalars().all()), total.scalar_one()


async def vote_counts(db: AsyncSession, issue_ids: list[int]) -> dict[int, VoteCounts]:
    """Upvote, confirm and comment counts per issue, in two grouped queries."""
    counts = {issue_id: VoteCounts() for issue_id in issue_ids}
    if not issue_ids:
        return counts

    votes = await db.execute(
        select(Vote.issue_id, Vote.type, func.count(Vote.id))
        .where(Vote.issue_id.in_(issue_ids))
        .group_by(Vote.issue_id, Vote.type)
    )
    for issue_id, vote_type, count in votes:
        if vote_type == "upvote":
            counts[issue_id].upvotes = count
        elif vote_type == "confirm":
            counts[issue_id].confirms = count

    comments = await db.execute(
        select(Comment.issue_id, func.count(Comment.id))
        .where(Comment.issue_id.in_(issue_ids))
        .group_by(Comment.issue_id)
    )
    for issue_id, count in comments:
        counts[issue_id].comments = count
    return counts


async def user_votes(db: AsyncSession, user_id: int | None, issue_ids: list[int]) -> dict[int, str]:
    """The caller's vote type per issue (confirm wins over upvote)."""
    if user_id is None or not issue_ids:
        return {}
    result = await db.execute(
        select(Vote.issue_id, Vote.type).where(Vote.user_id == user_id, Vote.issue_id.in_(issue_ids))
    )
    votes: dict[int, str] = {}
    for issue_id, vote_type in result:
        if votes.get(issue_id) != "confirm":
            votes[issue_id] = vote_type
    return votes


async def list_comments(db: AsyncSession, issue_id: int) -> list[Comment]:
    result = await db.execute(
        select(Comment).where(Comment.issue_id == issue_id).order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return list(result.scalars().all())


async def nearby_issues(db: AsyncSession, latitude: float, longitude: float, radius_km: float) -> list[Issue]:
    """Issues inside a bounding box of ``radius_km`` around the point."""
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        msg = "Coordenadas inválidas"
        raise InvalidInputError(msg)
    if radius_km <= 0:
        msg = "Raio deve ser positivo"
        raise InvalidInputError(msg)

    lat_delta = radius_km / KM_PER_DEGREE
    cos_lat = math.cos(math.radians(latitude))
    lng_delta = radius_km / (KM_PER_DEGREE * cos_lat) if cos_lat > 1e-9 else 180.0

    result = await db.execute(
        select(Issue)
        .where(
            Issue.latitude.between(latitude - lat_delta, latitude + lat_delta),
            Issue.longitude.between(longitude - lng_delta, longitude + lng_delta),
        )
        .order_by(Issue.reported_at.desc(), Issue.id.desc())
    )
    return list(result.scalars().all())


async def count_active_near(db: AsyncSession, latitude: float, longitude: float, delta: float = 0.1) -> int:
    """Open or investigating issues within ``delta`` degrees on both axes."""
    result = await db.execute(
        select(func.count(Issue.id)).where(
            Issue.latitude.between(latitude - delta, latitude + delta),
            Issue.longitude.between(longitude - delta, longitude + delta),
            Issue.status.in_(ACTIVE_STATUSES),
        )
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_issue(
    db: AsyncSession,
    redis: object,
    user_id: int,
    title: str,
    description: str,
    category: str,
    severity: str,
    latitude: float,
    longitude: float,
    address: str | None = None,
    region: str | None = None,
    images: list[str] | None = None,
) -> tuple[Issue, int]:
    """Create a report and reward the reporter. Returns (issue, points_earned)."""
    _check_choice(category, CATEGORIES, "Categoria inválida")
    _check_choice(severity, SEVERITIES, "Severidade inválida")

    now = utcnow()
    issue = Issue(
        title=title,
        description=description,
        category=category,
        severity=severity,
        status="open",
        latitude=latitude,
        longitude=longitude,
        address=address,
        region=region,
        images=images,
        reported_at=now,
        updated_at=now,
        user_id=user_id,
    )
    db.add(issue)
    await db.flush()

    points = report_points(severity)
    await award(db, redis, user_id, ContributionType.ISSUE_REPORTED, points, f"Reportou: {title}", issue_id=issue.id)
    await TriggerEngine(db, redis).evaluate(user_id, [RequirementKind.ISSUES])
    await db.refresh(issue, ["user"])

    logger.info("issue_created", issue_id=issue.id, user_id=user_id, category=category, severity=severity)
    return issue, points


async def update_issue(db: AsyncSession, redis: object, issue_id: int, user: User, changes: dict[str, Any]) -> Issue:
    """
    Apply partial changes. Moving an issue to ``resolved`` goes through
    resolve_issue() and therefore requires an admin.

    Raises:
        NotFoundError, PermissionDeniedError, InvalidInputError, ConflictError
    """
    issue = await get_issue(db, issue_id)
    _ensure_owner_or_admin(issue.user_id, user, "Sem permissão para editar esta ocorrência")

    _check_choice(changes.get("category"), CATEGORIES, "Categoria inválida")
    _check_choice(changes.get("severity"), SEVERITIES, "Severidade inválida")
    _check_choice(changes.get("status"), STATUSES, "Status inválido")

    status = changes.pop("status", None)
    for field, value in changes.items():
        if value is not None:
            setattr(issue, field, value)
    issue.updated_at = utcnow()

    if status == "resolved" and issue.status != "resolved":
        if user.role != "admin":
            msg = "Apenas administradores podem resolver ocorrências"
            raise PermissionDeniedError(msg)
        await resolve_issue(db, redis, issue.id)
    elif status is not None and status != "resolved":
        issue.status = status
        issue.resolved_at = None

    await db.flush()
    return issue


async def delete_issue(db: AsyncSession, issue_id: int, user: User) -> None:
    """Delete an issue with its votes and comments. Ledger rows stay, unlinked."""
    issue = await get_issue(db, issue_id)
    _ensure_owner_or_admin(issue.user_id, user, "Sem permissão para excluir esta ocorrência")

    await db.execute(update(Contribution).where(Contribution.issue_id == issue_id).values(issue_id=None))
    await db.execute(delete(Vote).where(Vote.issue_id == issue_id))
    await db.execute(delete(Comment).where(Comment.issue_id == issue_id))
    await db.delete(issue)
    await db.flush()
    logger.info("issue_deleted", issue_id=issue_id, by_user=user.id)


async def toggle_vote(db: AsyncSession, redis: object, issue_id: int, user_id: int, vote_type: str) -> tuple[bool, int]:
    """
    Add the vote, or remove it if present. Returns (voted, points_earned).

    A user is rewarded for confirming a given issue once, even if the confirm
    vote is toggled off and on again.
    """
    _check_choice(vote_type, VOTE_TYPES, "Tipo de voto inválido")
    issue = await get_issue(db, issue_id)

    result = await db.execute(
        select(Vote).where(Vote.issue_id == issue_id, Vote.user_id == user_id, Vote.type == vote_type)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        await db.delete(existing)
        await db.flush()
        return False, 0

    db.add(Vote(issue_id=issue_id, user_id=user_id, type=vote_type, created_at=utcnow()))
    await db.flush()

    points = 0
    if vote_type == "confirm":
        if not await has_issue_reward(db, user_id, ContributionType.ISSUE_CONFIRMED, issue_id):
            points = get_settings().confirm_points
            await award(
                db,
                redis,
                user_id,
                ContributionType.ISSUE_CONFIRMED,
                points,
                f"Confirmou ocorrência: {issue.title}",
                issue_id=issue_id,
            )
        await TriggerEngine(db, redis).evaluate(user_id, [RequirementKind.CONFIRMS])
    return True, points


async def add_comment(db: AsyncSession, redis: object, issue_id: int, user_id: int, content: str) -> tuple[Comment, int]:
    content = content.strip()
    if not content:
        msg = "Conteúdo do comentário é obrigatório"
        raise InvalidInputError(msg)
    issue = await get_issue(db, issue_id)

    comment = Comment(content=content, issue_id=issue_id, user_id=user_id, created_at=utcnow())
    db.add(comment)
    await db.flush()

    points = get_settings().comment_points
    await award(
        db, redis, user_id, ContributionType.COMMENT, points, f"Comentou em: {issue.title}", issue_id=issue_id
    )
    await TriggerEngine(db, redis).evaluate(user_id, [RequirementKind.COMMENTS])
    await db.refresh(comment, ["user"])
    return comment, points


async def delete_comment(db: AsyncSession, issue_id: int, comment_id: int, user: User) -> None:
    result = await db.execute(select(Comment).where(Comment.id == comment_id, Comment.issue_id == issue_id))
    comment = result.scalar_one_or_none()
    if comment is None:
        msg = "Comentário não encontrado"
        raise NotFoundError(msg)
    _ensure_owner_or_admin(comment.user_id, user, "Sem permissão para excluir este comentário")
    await db.delete(comment)
    await db.flush()


async def resolve_issue(db: AsyncSession, redis: object, issue_id: int) -> tuple[Issue, int]:
    """
    Mark an issue resolved and reward its reporter once. Returns (issue, points).

    Raises:
        ConflictError: The issue is already resolved.
    """
    issue = await get_issue(db, issue_id)
    if issue.status == "resolved":
        msg = "Ocorrência já resolvida"
        raise ConflictError(msg)

    now = utcnow()
    issue.status = "resolved"
    issue.resolved_at = now
    issue.updated_at = now
    await db.flush()

    points = 0
    if not await has_issue_reward(db, issue.user_id, ContributionType.ISSUE_RESOLVED, issue_id):
        points = get_settings().resolution_points
        await award(
            db,
            redis,
            issue.user_id,
            ContributionType.ISSUE_RESOLVED,
            points,
            f"Ocorrência resolvida: {issue.title}",
            issue_id=issue_id,
        )
        await TriggerEngine(db, redis).evaluate(issue.user_id)

    logger.info("issue_resolved", issue_id=issue_id, reporter_id=issue.user_id, points=points)
    return issue, points
