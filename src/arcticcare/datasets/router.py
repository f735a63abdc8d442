"""Dataset endpoints plus climate readings (submitting one earns points)."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user, require_admin
from arcticcare.database import get_session
from arcticcare.datasets import service
from arcticcare.datasets.schemas import (
    AggregateResponse,
    DatasetCreateRequest,
    DatasetDetailResponse,
    DatasetListResponse,
    DatasetMutationResponse,
    DatasetResponse,
    DatasetUpdateRequest,
    ReadingCreateRequest,
    ReadingCreateResponse,
    ReadingListResponse,
    ReadingResponse,
    ReadingStatsResponse,
)
from arcticcare.db.models import User
from arcticcare.redis_client import get_optional_redis

router = APIRouter(prefix="/api/datasets", tags=["Datasets"])


@router.get("", response_model=DatasetListResponse)
async def list_datasets(
    category: str | None = None,
    region: str | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_session),
):
    datasets = await service.list_datasets(db, category=category, region=region, search=search)
    return DatasetListResponse(datasets=[DatasetResponse.model_validate(d) for d in datasets])


# Fixed paths are registered before /{dataset_id}.


@router.get("/readings/all", response_model=ReadingListResponse)
async def list_readings(
    type: str | None = None,  # noqa: A002
    region: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_session),
):
    readings = await service.list_readings(db, type=type, region=region, start=start_date, end=end_date, limit=limit)
    return ReadingListResponse(readings=[ReadingResponse.model_validate(r) for r in readings])


@router.post("/readings", response_model=ReadingCreateResponse, status_code=201)
async def submit_reading(
    body: ReadingCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Submit a climate reading. Earns ``data_submitted`` points."""
    reading, points = await service.submit_reading(db, redis, user.id, **body.model_dump())
    await db.commit()
    return ReadingCreateResponse(
        message="Leitura registrada com sucesso!",
        reading=ReadingResponse.model_validate(reading),
        points_earned=points,
    )


@router.get("/aggregate/{region}", response_model=AggregateResponse)
async def aggregate(
    region: str,
    type: str | None = None,  # noqa: A002
    period: str = "7d",
    db: AsyncSession = Depends(get_session),
):
    readings, stats = await service.aggregate(db, region, period=period, type=type)
    return AggregateResponse(
        region=region,
        period=period,
        stats={name: ReadingStatsResponse(**asdict(s)) for name, s in stats.items()},
        readings=[ReadingResponse.model_validate(r) for r in readings],
    )


@router.get("/category/{category}", response_model=DatasetListResponse)
async def list_by_category(category: str, db: AsyncSession = Depends(get_session)):
    datasets = await service.list_by_category(db, category)
    return DatasetListResponse(datasets=[DatasetResponse.model_validate(d) for d in datasets])


@router.get("/{dataset_id}", response_model=DatasetDetailResponse)
async def get_dataset(dataset_id: int, db: AsyncSession = Depends(get_session)):
    dataset = await service.get_dataset(db, dataset_id)
    return DatasetDetailResponse(dataset=DatasetResponse.model_validate(dataset))


@router.post("", response_model=DatasetMutationResponse, status_code=201)
async def create_dataset(
    body: DatasetCreateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    dataset = await service.create_dataset(db, **body.model_dump())
    await db.commit()
    return DatasetMutationResponse(
        message="Dataset criado com sucesso!", dataset=DatasetResponse.model_validate(dataset)
    )


@router.put("/{dataset_id}", response_model=DatasetMutationResponse)
async def update_dataset(
    dataset_id: int,
    body: DatasetUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    dataset = await service.update_dataset(db, dataset_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return DatasetMutationResponse(message="Dataset atualizado!", dataset=DatasetResponse.model_validate(dataset))


@router.delete("/{dataset_id}")
async def delete_dataset(
    dataset_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    await service.delete_dataset(db, dataset_id)
    await db.commit()
    return {"message": "Dataset excluído com sucesso!"}
