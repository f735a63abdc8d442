"""Institution accounts and report management.

Institutions authenticate with an API key. Report status changes go through
the issue service, so resolving a report rewards its reporter exactly once,
whichever surface resolves it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import case, func, select

from arcticcare.db.models import Institution, Issue
from arcticcare.gamification.exceptions import ConflictError, InvalidInputError
from arcticcare.institutions.api_keys import generate_api_key, lookup_prefix, verify_api_key
from arcticcare.issues import service as issues
from arcticcare.time_utils import as_utc, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

INSTITUTION_TYPES = ("government", "civil_defense", "environmental_agency", "ngo", "research", "other")

SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}

_severity_order = case(SEVERITY_RANK, value=Issue.severity, else_=0)


@dataclass
class ReportFilters:
    status: str | None = None
    category: str | None = None
    severity: str | None = None
    region: str | None = None
    start: datetime | None = None
    end: datetime | None = None


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


async def register(db: AsyncSession, name: str, email: str, type: str) -> tuple[Institution, str]:  # noqa: A002
    """
    Create an institution and its first API key. Returns (institution, full_key).

    Raises:
        InvalidInputError: Unknown institution type.
        ConflictError: Email already registered.
    """
    if type not in INSTITUTION_TYPES:
        msg = "Tipo de instituição inválido"
        raise InvalidInputError(msg)

    email = email.lower()
    existing = await db.execute(select(Institution.id).where(Institution.email == email))
    if existing.scalar_one_or_none() is not None:
        msg = "Email já cadastrado"
        raise ConflictError(msg)

    full_key, prefix, key_hash = generate_api_key()
    now = utcnow()
    institution = Institution(
        name=name,
        email=email,
        type=type,
        is_active=True,
        api_key_prefix=prefix,
        api_key_hash=key_hash,
        created_at=now,
        updated_at=now,
    )
    db.add(institution)
    await db.flush()
    logger.info("institution_registered", institution_id=institution.id, type=type)
    return institution, full_key


async def regenerate_key(db: AsyncSession, institution: Institution) -> str:
    """Replace the institution's key. The previous key stops working immediately."""
    full_key, prefix, key_hash = generate_api_key()
    institution.api_key_prefix = prefix
    institution.api_key_hash = key_hash
    institution.updated_at = utcnow()
    await db.flush()
    logger.info("institution_key_regenerated", institution_id=institution.id)
    return full_key


async def authenticate(db: AsyncSession, api_key: str) -> Institution | None:
    """Active institution owning ``api_key``, or None."""
    result = await db.execute(
        select(Institution).where(
            Institution.api_key_prefix == lookup_prefix(api_key),
            Institution.is_active.is_(True),
        )
    )
    for institution in result.scalars().all():
        if verify_api_key(api_key, institution.api_key_hash):
            return institution
    return None


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def _report_conditions(filters: ReportFilters) -> list[Any]:
    conditions: list[Any] = []
    if filters.status:
        conditions.append(Issue.status == filters.status)
    if filters.category:
        conditions.append(Issue.category == filters.category)
    if filters.severity:
        conditions.append(Issue.severity == filters.severity)
    if filters.region:
        conditions.append(Issue.region.contains(filters.region))
    if filters.start is not None:
        conditions.append(Issue.reported_at >= as_utc(filters.start))
    if filters.end is not None:
        conditions.append(Issue.reported_at <= as_utc(filters.end))
    return conditions


async def list_reports(
    db: AsyncSession,
    filters: ReportFilters,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Issue], int]:
    """Most severe first, then newest. Returns (issues, total)."""
    conditions = _report_conditions(filters)
    result = await db.execute(
        select(Issue)
        .where(*conditions)
        .order_by(_severity_order.desc(), Issue.reported_at.desc(), Issue.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await db.execute(select(func.count(Issue.id)).where(*conditions))
    return list(result.scalars().all()), total.scalar_one()


async def critical_reports(db: AsyncSession) -> list[Issue]:
    """Unresolved critical reports, newest first."""
    result = await db.execute(
        select(Issue)
        .where(Issue.severity == "critical", Issue.status.in_(issues.ACTIVE_STATUSES))
        .order_by(Issue.reported_at.desc(), Issue.id.desc())
    )
    return list(result.scalars().all())


async def update_report_status(
    db: AsyncSession,
    redis: object,
    issue_id: int,
    status: str,
    institution: Institution,
) -> tuple[Issue, int]:
    """
    Move a report to ``status``. Returns (issue, points awarded to the reporter).

    Raises:
        NotFoundError: Unknown report.
        InvalidInputError: Unknown status.
        ConflictError: Resolving an already resolved report.
    """
    if status not in issues.STATUSES:
        msg = "Status inválido"
        raise InvalidInputError(msg)

    if status == "resolved":
        return await resolve_report(db, redis, issue_id, institution)

    issue = await issues.get_issue(db, issue_id)
    issue.status = status
    issue.resolved_at = None
    issue.updated_at = utcnow()
    await db.flush()
    logger.info("report_status_changed", issue_id=issue_id, status=status, institution_id=institution.id)
    return issue, 0


async def resolve_report(
    db: AsyncSession,
    redis: object,
    issue_id: int,
    institution: Institution,
) -> tuple[Issue, int]:
    issue, points = await issues.resolve_issue(db, redis, issue_id)
    logger.info("report_resolved", issue_id=issue_id, institution_id=institution.id, points=points)
    return issue, points
