"""Public alerts: admin-managed notices plus alerts generated from critical issues.

An alert is live while ``is_active`` and ``expires_at`` is unset or in the
future. Listings put critical first, then warning, then info, newest first
within a type.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import case, func, or_, select

from arcticcare.config import get_settings
from arcticcare.db.models import Alert, Issue
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.issues.service import ACTIVE_STATUSES
from arcticcare.time_utils import as_utc, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ALERT_TYPES = ("critical", "warning", "info")

CATEGORY_NAMES = {
    "flood": "Inundação",
    "fire": "Incêndio",
    "pollution": "Poluição",
    "deforestation": "Desmatamento",
    "waste": "Descarte Irregular",
    "other": "Ocorrência Ambiental",
}

GENERATED_EXCERPT_CHARS = 200

_type_order = case({t: i for i, t in enumerate(ALERT_TYPES)}, value=Alert.type, else_=len(ALERT_TYPES))


def _live(now: datetime) -> list[Any]:
    return [Alert.is_active.is_(True), or_(Alert.expires_at.is_(None), Alert.expires_at > now)]


def _check_type(alert_type: str | None) -> None:
    if alert_type is not None and alert_type not in ALERT_TYPES:
        msg = "Tipo de alerta inválido"
        raise InvalidInputError(msg)


async def _select(db: AsyncSession, *conditions: Any) -> list[Alert]:  # noqa: ANN401
    result = await db.execute(
        select(Alert).where(*conditions).order_by(_type_order, Alert.created_at.desc(), Alert.id.desc())
    )
    return list(result.scalars().all())


async def list_alerts(
    db: AsyncSession,
    type: str | None = None,  # noqa: A002
    region: str | None = None,
    include_expired: bool = False,
    now: datetime | None = None,
) -> list[Alert]:
    conditions: list[Any] = []
    if type:
        conditions.append(Alert.type == type)
    if region:
        conditions.append(Alert.region.contains(region))
    if not include_expired:
        conditions.extend(_live(now or utcnow()))
    return await _select(db, *conditions)


async def alerts_for_region(db: AsyncSession, region: str, now: datetime | None = None) -> list[Alert]:
    return await _select(db, Alert.region.contains(region), *_live(now or utcnow()))


async def critical_alerts(db: AsyncSession, now: datetime | None = None) -> list[Alert]:
    return await _select(db, Alert.type == "critical", *_live(now or utcnow()))


async def count_live(db: AsyncSession, now: datetime | None = None) -> int:
    result = await db.execute(select(func.count(Alert.id)).where(*_live(now or utcnow())))
    return result.scalar_one()


async def get_alert(db: AsyncSession, alert_id: int) -> Alert:
    alert = (await db.execute(select(Alert).where(Alert.id == alert_id))).scalar_one_or_none()
    if alert is None:
        msg = "Alerta não encontrado"
        raise NotFoundError(msg)
    return alert


async def create_alert(
    db: AsyncSession,
    type: str,  # noqa: A002
    title: str,
    message: str,
    region: str | None = None,
    expires_at: datetime | None = None,
    issue_id: int | None = None,
) -> Alert:
    _check_type(type)
    alert = Alert(
        type=type,
        title=title,
        message=message,
        region=region,
        is_active=True,
        expires_at=as_utc(expires_at) if expires_at else None,
        created_at=utcnow(),
        issue_id=issue_id,
    )
    db.add(alert)
    await db.flush()
    logger.info("alert_created", alert_id=alert.id, type=type, issue_id=issue_id)
    return alert


async def update_alert(db: AsyncSession, alert_id: int, changes: dict[str, Any]) -> Alert:
    """Partial update. ``region`` and ``expiresAt`` may be cleared with an explicit null."""
    alert = await get_alert(db, alert_id)
    _check_type(changes.get("type"))

    for field in ("type", "title", "message", "is_active"):
        if changes.get(field) is not None:
            setattr(alert, field, changes[field])
    if "region" in changes:
        alert.region = changes["region"]
    if "expires_at" in changes:
        expires_at = changes["expires_at"]
        alert.expires_at = as_utc(expires_at) if expires_at else None

    await db.flush()
    return alert


async def deactivate_alert(db: AsyncSession, alert_id: int) -> Alert:
    alert = await get_alert(db, alert_id)
    alert.is_active = False
    await db.flush()
    logger.info("alert_deactivated", alert_id=alert_id)
    return alert


async def delete_alert(db: AsyncSession, alert_id: int) -> None:
    alert = await get_alert(db, alert_id)
    await db.delete(alert)
    await db.flush()


def _excerpt(text: str) -> str:
    if len(text) <= GENERATED_EXCERPT_CHARS:
        return text
    return text[:GENERATED_EXCERPT_CHARS] + "..."


async def generate_from_issues(db: AsyncSession, now: datetime | None = None) -> list[Alert]:
    """
    Create one critical alert per unresolved critical issue that has no live
    alert yet. Generated alerts expire after ``generated_alert_ttl_days``.
    """
    if now is None:
        now = utcnow()
    ttl = timedelta(days=get_settings().generated_alert_ttl_days)

    covered = select(Alert.issue_id).where(Alert.issue_id.is_not(None), *_live(now))
    result = await db.execute(
        select(Issue)
        .where(
            Issue.severity == "critical",
            Issue.status.in_(ACTIVE_STATUSES),
            Issue.id.not_in(covered),
        )
        .order_by(Issue.reported_at.asc(), Issue.id.asc())
    )

    generated = []
    for issue in result.scalars().all():
        place = issue.region or "Localização não especificada"
        alert = await create_alert(
            db,
            type="critical",
            title=f"Alerta: {CATEGORY_NAMES.get(issue.category, issue.category)} - {place}",
            message=f"{issue.title}. Reportado por {issue.user.name}. {_excerpt(issue.description)}",
            region=issue.region,
            expires_at=now + ttl,
            issue_id=issue.id,
        )
        generated.append(alert)

    logger.info("alerts_generated", count=len(generated))
    return generated
