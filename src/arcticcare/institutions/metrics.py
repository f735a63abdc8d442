"""Aggregated report metrics for institutions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from arcticcare.db.models import Issue
from arcticcare.institutions.service import SEVERITY_RANK
from arcticcare.issues.service import ACTIVE_STATUSES
from arcticcare.time_utils import as_utc, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

LAST_DAY = timedelta(hours=24)


@dataclass
class Overview:
    total: int
    by_status: dict[str, int]
    critical: int
    new_today: int
    resolved_today: int
    resolution_rate: int


@dataclass
class ResolutionTime:
    total_resolved: int
    average_hours: int
    average_days: float
    by_category: dict[str, int]
    by_severity: dict[str, int]


async def _count(db: AsyncSession, *where: Any) -> int:  # noqa: ANN401
    return (await db.execute(select(func.count(Issue.id)).where(*where))).scalar_one()


async def overview(db: AsyncSession, now: datetime | None = None) -> Overview:
    """Totals by status, unresolved critical count, last-24h activity and resolution rate (%)."""
    since = (now or utcnow()) - LAST_DAY
    rows = await db.execute(select(Issue.status, func.count(Issue.id)).group_by(Issue.status))
    by_status = {status: count for status, count in rows}
    total = sum(by_status.values())
    resolved = by_status.get("resolved", 0)

    return Overview(
        total=total,
        by_status=by_status,
        critical=await _count(db, Issue.severity == "critical", Issue.status.in_(ACTIVE_STATUSES)),
        new_today=await _count(db, Issue.reported_at >= since),
        resolved_today=await _count(db, Issue.resolved_at >= since),
        resolution_rate=round(resolved / total * 100) if total else 0,
    )


async def by_category(db: AsyncSession) -> tuple[int, list[dict]]:
    """Share of all reports per category, largest first. Returns (total, distribution)."""
    rows = await db.execute(
        select(Issue.category, func.count(Issue.id).label("n"))
        .group_by(Issue.category)
        .order_by(func.count(Issue.id).desc(), Issue.category)
    )
    counts = [(category, n) for category, n in rows]
    total = sum(n for _, n in counts)
    return total, [
        {"category": category, "count": n, "percentage": round(n / total * 100)} for category, n in counts
    ]


async def by_risk(db: AsyncSession) -> list[dict]:
    """Unresolved reports per severity, most severe first."""
    rows = await db.execute(
        select(Issue.severity, func.count(Issue.id))
        .where(Issue.status.in_(ACTIVE_STATUSES))
        .group_by(Issue.severity)
    )
    counts = [{"severity": severity, "count": n} for severity, n in rows]
    return sorted(counts, key=lambda row: -SEVERITY_RANK.get(row["severity"], 0))


async def trend(db: AsyncSession, days: int = 7, now: datetime | None = None) -> list[dict]:
    """Reported and resolved counts per UTC day for the last ``days`` days, oldest first."""
    now = as_utc(now or utcnow())
    buckets = {
        (now - timedelta(days=offset)).date().isoformat(): {"reported": 0, "resolved": 0}
        for offset in range(days)
    }
    since = now - timedelta(days=days)

    reported = await db.execute(select(Issue.reported_at).where(Issue.reported_at >= since))
    for (reported_at,) in reported:
        key = as_utc(reported_at).date().isoformat()
        if key in buckets:
            buckets[key]["reported"] += 1

    resolved = await db.execute(select(Issue.resolved_at).where(Issue.resolved_at >= since))
    for (resolved_at,) in resolved:
        key = as_utc(resolved_at).date().isoformat()
        if key in buckets:
            buckets[key]["resolved"] += 1

    return [{"date": key, **counts} for key, counts in sorted(buckets.items())]


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


async def resolution_time(db: AsyncSession) -> ResolutionTime:
    """Hours from report to resolution, averaged overall, per category and per severity."""
    rows = await db.execute(
        select(Issue.reported_at, Issue.resolved_at, Issue.category, Issue.severity).where(
            Issue.status == "resolved", Issue.resolved_at.is_not(None)
        )
    )

    hours: list[float] = []
    per_category: dict[str, list[float]] = {}
    per_severity: dict[str, list[float]] = {}
    for reported_at, resolved_at, category, severity in rows:
        elapsed = (as_utc(resolved_at) - as_utc(reported_at)).total_seconds() / 3600
        hours.append(elapsed)
        per_category.setdefault(category, []).append(elapsed)
        per_severity.setdefault(severity, []).append(elapsed)

    if not hours:
        return ResolutionTime(total_resolved=0, average_hours=0, average_days=0.0, by_category={}, by_severity={})

    average = _mean(hours)
    return ResolutionTime(
        total_resolved=len(hours),
        average_hours=round(average),
        average_days=round(average / 24, 1),
        by_category={k: round(_mean(v)) for k, v in per_category.items()},
        by_severity={k: round(_mean(v)) for k, v in per_severity.items()},
    )
