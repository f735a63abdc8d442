"""Aggregate statistics: dashboard counters, per-user stats, issue timeline,
regional breakdown and community-wide impact estimates.

Everything here is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from arcticcare.alerts.service import count_live
from arcticcare.db.models import ClimateReading, Comment, Contribution, Dataset, Issue, User, Vote
from arcticcare.gamification import ranking_service
from arcticcare.gamification.exceptions import InvalidInputError
from arcticcare.gamification.ledger_service import list_contributions, summarize_by_type
from arcticcare.time_utils import as_utc, utcnow
from arcticcare.users.service import (
    CO2_KG_PER_ISSUE,
    WASTE_KG_PER_ISSUE,
    WATER_LITERS_PER_ISSUE,
    UserCounts,
    get_counts,
    get_user,
    recent_issues,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

RECENT_WINDOW = timedelta(days=7)
TIMELINE_PERIODS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
COMMUNITY_TOP = 5

# Community-wide estimates
TREES_PER_RESOLVED_ISSUE = 0.5
CAR_TRIP_CO2_KG = 22
TREE_CO2_KG_PER_YEAR = 21
SHOWER_LITERS = 150
WASTE_BAG_KG = 5

CATEGORY_IMPACT = {
    "fire": (5, "{} hectares monitorados"),
    "flood": (100, "{} pessoas alertadas"),
    "pollution": (10, "{}kg de poluentes reportados"),
    "deforestation": (2, "{} hectares protegidos"),
    "waste": (5, "{}kg de resíduos reportados"),
}


@dataclass
class Overview:
    total_issues: int
    open_issues: int
    resolved_issues: int
    critical_issues: int
    total_users: int
    active_alerts: int
    total_datasets: int
    total_readings: int


@dataclass
class Dashboard:
    overview: Overview
    issues_by_category: dict[str, int]
    issues_by_severity: dict[str, int]
    recent_issues: int
    recent_comments: int


@dataclass
class TimelineDay:
    date: str
    total: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_severity: dict[str, int] = field(default_factory=dict)


@dataclass
class RegionStats:
    region: str
    total_issues: int = 0
    severity: dict[str, int] = field(default_factory=dict)
    status: dict[str, int] = field(default_factory=dict)


@dataclass
class CommunityTotals:
    members: int
    total_points: int
    contributions: int
    issues_reported: int
    issues_resolved: int
    confirmations: int


@dataclass
class UserStats:
    user: User
    rank: int
    counts: UserCounts
    contributions_by_type: list[dict]
    issues_by_status: dict[str, int]


async def _count(db: AsyncSession, column: Any, *where: Any) -> int:  # noqa: ANN401
    return (await db.execute(select(func.count(column)).where(*where))).scalar_one()


async def _issues_grouped(db: AsyncSession, column: Any, *where: Any) -> dict[str, int]:  # noqa: ANN401
    result = await db.execute(
        select(column, func.count(Issue.id)).where(*where).group_by(column).order_by(column)
    )
    return {key: count for key, count in result}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def dashboard(db: AsyncSession, now: datetime | None = None) -> Dashboard:
    if now is None:
        now = utcnow()
    since = now - RECENT_WINDOW

    overview = Overview(
        total_issues=await _count(db, Issue.id),
        open_issues=await _count(db, Issue.id, Issue.status == "open"),
        resolved_issues=await _count(db, Issue.id, Issue.status == "resolved"),
        critical_issues=await _count(db, Issue.id, Issue.severity == "critical", Issue.status != "resolved"),
        total_users=await _count(db, User.id),
        active_alerts=await count_live(db, now),
        total_datasets=await _count(db, Dataset.id),
        total_readings=await _count(db, ClimateReading.id),
    )
    return Dashboard(
        overview=overview,
        issues_by_category=await _issues_grouped(db, Issue.category),
        issues_by_severity=await _issues_grouped(db, Issue.severity),
        recent_issues=await _count(db, Issue.id, Issue.reported_at >= since),
        recent_comments=await _count(db, Comment.id, Comment.created_at >= since),
    )


# ---------------------------------------------------------------------------
# Per-user
# ---------------------------------------------------------------------------


async def user_stats(db: AsyncSession, user_id: int) -> UserStats:
    """
    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await get_user(db, user_id)
    return UserStats(
        user=user,
        rank=await ranking_service.user_rank(db, user_id),
        counts=await get_counts(db, user_id),
        contributions_by_type=await summarize_by_type(db, user_id),
        issues_by_status=await _issues_grouped(db, Issue.status, Issue.user_id == user_id),
    )


async def my_stats(db: AsyncSession, user_id: int) -> tuple[UserStats, int, list[Contribution], list[Issue]]:
    """User stats plus total users, latest ten ledger entries and latest five issues."""
    stats = await user_stats(db, user_id)
    total_users = await ranking_service.count_users(db)
    contributions = await list_contributions(db, user_id, limit=10)
    issues = await recent_issues(db, user_id, limit=5)
    return stats, total_users, contributions, issues


# ---------------------------------------------------------------------------
# Timeline and regions
# ---------------------------------------------------------------------------


def bucket_by_day(issues: list[Issue]) -> list[TimelineDay]:
    """Group issues by UTC calendar day of ``reported_at``, oldest day first."""
    days: dict[str, TimelineDay] = {}
    for issue in issues:
        key = as_utc(issue.reported_at).date().isoformat()
        day = days.setdefault(key, TimelineDay(date=key))
        day.total += 1
        day.by_category[issue.category] = day.by_category.get(issue.category, 0) + 1
        day.by_severity[issue.severity] = day.by_severity.get(issue.severity, 0) + 1
    return [days[key] for key in sorted(days)]


async def timeline(
    db: AsyncSession,
    period: str = "30d",
    category: str | None = None,
    now: datetime | None = None,
) -> tuple[datetime, datetime, int, list[TimelineDay]]:
    """
    Issues reported inside the period, bucketed per day.
    Returns (start, end, total_issues, days).

    Raises:
        InvalidInputError: Unknown period.
    """
    days = TIMELINE_PERIODS.get(period)
    if days is None:
        msg = "Período inválido. Use: " + ", ".join(TIMELINE_PERIODS)
        raise InvalidInputError(msg)

    end = now or utcnow()
    start = end - timedelta(days=days)
    conditions: list[Any] = [Issue.reported_at >= start]
    if category:
        conditions.append(Issue.category == category)

    result = await db.execute(select(Issue).where(*conditions).order_by(Issue.reported_at.asc(), Issue.id.asc()))
    issues = list(result.scalars().all())
    return start, end, len(issues), bucket_by_day(issues)


async def regions(db: AsyncSession) -> list[RegionStats]:
    """Per-region issue totals with severity and status breakdowns, busiest first."""
    result = await db.execute(
        select(Issue.region, Issue.severity, Issue.status, func.count(Issue.id))
        .where(Issue.region.is_not(None))
        .group_by(Issue.region, Issue.severity, Issue.status)
    )

    by_region: dict[str, RegionStats] = {}
    for region, severity, status, count in result:
        stats = by_region.setdefault(region, RegionStats(region=region))
        stats.total_issues += count
        stats.severity[severity] = stats.severity.get(severity, 0) + count
        stats.status[status] = stats.status.get(status, 0) + count

    return sorted(by_region.values(), key=lambda s: (-s.total_issues, s.region))


# ---------------------------------------------------------------------------
# Community impact
# ---------------------------------------------------------------------------


def category_impact(category: str, count: int) -> str:
    factor, template = CATEGORY_IMPACT.get(category, (None, None))
    if factor is None:
        return f"{count} ocorrências registradas"
    return template.format(count * factor)


def estimate_community_impact(issues: int, resolved: int) -> dict[str, dict]:
    co2 = round(issues * CO2_KG_PER_ISSUE, 1)
    trees = round(resolved * TREES_PER_RESOLVED_ISSUE, 1)
    water = issues * WATER_LITERS_PER_ISSUE
    waste = round(issues * WASTE_KG_PER_ISSUE, 1)
    return {
        "co2Saved": {
            "value": co2,
            "unit": "kg",
            "description": "CO₂ economizado",
            "equivalent": f"{round(co2 / CAR_TRIP_CO2_KG)} viagens de carro evitadas",
        },
        "treesEquivalent": {
            "value": trees,
            "unit": "árvores",
            "description": "Equivalente em árvores plantadas",
            "equivalent": f"{round(trees * TREE_CO2_KG_PER_YEAR)}kg de CO₂ absorvido/ano",
        },
        "waterSaved": {
            "value": water,
            "unit": "litros",
            "description": "Água preservada",
            "equivalent": f"{round(water / SHOWER_LITERS)} banhos economizados",
        },
        "wasteReported": {
            "value": waste,
            "unit": "kg",
            "description": "Resíduos reportados",
            "equivalent": f"{round(waste / WASTE_BAG_KG)} sacos de lixo",
        },
        "areasProtected": {
            "value": resolved,
            "unit": "áreas",
            "description": "Áreas protegidas",
        },
    }


async def community_totals(db: AsyncSession) -> CommunityTotals:
    total_points = (await db.execute(select(func.coalesce(func.sum(User.points), 0)))).scalar_one()
    return CommunityTotals(
        members=await _count(db, User.id),
        total_points=int(total_points),
        contributions=await _count(db, Contribution.id),
        issues_reported=await _count(db, Issue.id),
        issues_resolved=await _count(db, Issue.id, Issue.status == "resolved"),
        confirmations=await _count(db, Vote.id, Vote.type == "confirm"),
    )


async def community_impact(db: AsyncSession) -> tuple[CommunityTotals, dict, list[dict], list]:
    """Returns (totals, environmental impact, per-category breakdown, top contributors)."""
    totals = await community_totals(db)
    by_category = await _issues_grouped(db, Issue.category)
    breakdown = [
        {"category": category, "count": count, "impact": category_impact(category, count)}
        for category, count in by_category.items()
    ]
    top = await ranking_service.top(db, COMMUNITY_TOP)
    impact = estimate_community_impact(totals.issues_reported, totals.issues_resolved)
    return totals, impact, breakdown, top

