"""Curated climate datasets and user-submitted readings.

Submitting a reading is a rewarded action: it appends a ``data_submitted``
entry to the ledger and runs the badge trigger engine. Nothing here commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import or_, select

from arcticcare.config import get_settings
from arcticcare.db.models import ClimateReading, Dataset
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.gamification.ledger_service import ContributionType, award
from arcticcare.gamification.trigger_engine import TriggerEngine
from arcticcare.time_utils import as_utc, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DATASET_CATEGORIES = ("temperature", "air_quality", "water", "vegetation", "weather")
DEFAULT_READING_SOURCE = "user_submitted"

AGGREGATE_PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "1y": timedelta(days=365),
}


@dataclass
class ReadingStats:
    average: float
    min: float
    max: float
    count: int


def _check_category(category: str | None) -> None:
    if category is not None and category not in DATASET_CATEGORIES:
        msg = "Categoria inválida"
        raise InvalidInputError(msg)


# ---------------------------------------------------------------------------
# Datasets
# ---------------------------------------------------------------------------


async def list_datasets(
    db: AsyncSession,
    category: str | None = None,
    region: str | None = None,
    search: str | None = None,
) -> list[Dataset]:
    conditions: list[Any] = []
    if category:
        conditions.append(Dataset.category == category)
    if region:
        conditions.append(Dataset.region.contains(region))
    if search:
        conditions.append(or_(Dataset.name.contains(search), Dataset.description.contains(search)))

    result = await db.execute(
        select(Dataset).where(*conditions).order_by(Dataset.last_updated.desc(), Dataset.id.desc())
    )
    return list(result.scalars().all())


async def list_by_category(db: AsyncSession, category: str) -> list[Dataset]:
    """
    Raises:
        InvalidInputError: Unknown dataset category.
    """
    _check_category(category)
    return await list_datasets(db, category=category)


async def get_dataset(db: AsyncSession, dataset_id: int) -> Dataset:
    dataset = (await db.execute(select(Dataset).where(Dataset.id == dataset_id))).scalar_one_or_none()
    if dataset is None:
        msg = "Dataset não encontrado"
        raise NotFoundError(msg)
    return dataset


async def create_dataset(
    db: AsyncSession,
    name: str,
    description: str,
    category: str,
    source: str,
    data: Any,  # noqa: ANN401
    region: str | None = None,
    unit: str | None = None,
) -> Dataset:
    _check_category(category)
    now = utcnow()
    dataset = Dataset(
        name=name,
        description=description,
        category=category,
        source=source,
        region=region,
        data=data,
        unit=unit,
        last_updated=now,
        created_at=now,
    )
    db.add(dataset)
    await db.flush()
    logger.info("dataset_created", dataset_id=dataset.id, category=category)
    return dataset


async def update_dataset(db: AsyncSession, dataset_id: int, changes: dict[str, Any]) -> Dataset:
    """Apply the non-null fields of ``changes`` and bump ``last_updated``."""
    dataset = await get_dataset(db, dataset_id)
    _check_category(changes.get("category"))
    for field, value in changes.items():
        if value is not None:
            setattr(dataset, field, value)
    dataset.last_updated = utcnow()
    await db.flush()
    return dataset


async def delete_dataset(db: AsyncSession, dataset_id: int) -> None:
    dataset = await get_dataset(db, dataset_id)
    await db.delete(dataset)
    await db.flush()
    logger.info("dataset_deleted", dataset_id=dataset_id)


# ---------------------------------------------------------------------------
# Readings
# ---------------------------------------------------------------------------


async def list_readings(
    db: AsyncSession,
    type: str | None = None,  # noqa: A002
    region: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 100,
) -> list[ClimateReading]:
    """Newest first, optionally bounded by ``start``/``end`` (inclusive)."""
    conditions: list[Any] = []
    if type:
        conditions.append(ClimateReading.type == type)
    if region:
        conditions.append(ClimateReading.region.contains(region))
    if start is not None:
        conditions.append(ClimateReading.recorded_at >= as_utc(start))
    if end is not None:
        conditions.append(ClimateReading.recorded_at <= as_utc(end))

    result = await db.execute(
        select(ClimateReading)
        .where(*conditions)
        .order_by(ClimateReading.recorded_at.desc(), ClimateReading.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def submit_reading(
    db: AsyncSession,
    redis: object,
    user_id: int,
    type: str,  # noqa: A002
    value: float,
    unit: str,
    latitude: float,
    longitude: float,
    region: str | None = None,
    source: str | None = None,
    now: datetime | None = None,
) -> tuple[ClimateReading, int]:
    """Store a reading and reward the submitter. Returns (reading, points_earned)."""
    reading = ClimateReading(
        type=type,
        value=value,
        unit=unit,
        latitude=latitude,
        longitude=longitude,
        region=region,
        source=source or DEFAULT_READING_SOURCE,
        recorded_at=now or utcnow(),
        user_id=user_id,
    )
    db.add(reading)
    await db.flush()

    points = get_settings().reading_points
    await award(db, redis, user_id, ContributionType.DATA_SUBMITTED, points, f"Enviou leitura de {type}")
    await TriggerEngine(db, redis).evaluate(user_id)

    logger.info("reading_submitted", reading_id=reading.id, user_id=user_id, type=type, points=points)
    return reading, points


def summarize(readings: list[ClimateReading]) -> dict[str, ReadingStats]:
    """Average (two decimals), min, max and count per reading type."""
    grouped: dict[str, list[float]] = {}
    for reading in readings:
        grouped.setdefault(reading.type, []).append(reading.value)

    return {
        reading_type: ReadingStats(
            average=round(sum(values) / len(values), 2),
            min=min(values),
            max=max(values),
            count=len(values),
        )
        for reading_type, values in grouped.items()
    }


async def aggregate(
    db: AsyncSession,
    region: str,
    period: str = "7d",
    type: str | None = None,  # noqa: A002
    now: datetime | None = None,
) -> tuple[list[ClimateReading], dict[str, ReadingStats]]:
    """
    Readings for a region inside the period window, oldest first, with per-type stats.

    Raises:
        InvalidInputError: Unknown period.
    """
    window = AGGREGATE_PERIODS.get(period)
    if window is None:
        msg = "Período inválido. Use: " + ", ".join(AGGREGATE_PERIODS)
        raise InvalidInputError(msg)

    since = (now or utcnow()) - window
    conditions: list[Any] = [ClimateReading.region.contains(region), ClimateReading.recorded_at >= since]
    if type:
        conditions.append(ClimateReading.type == type)

    result = await db.execute(
        select(ClimateReading).where(*conditions).order_by(ClimateReading.recorded_at.asc(), ClimateReading.id.asc())
    )
    readings = list(result.scalars().all())
    return readings, summarize(readings)
