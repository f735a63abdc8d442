"""Request/response schemas for dataset and climate reading endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from arcticcare.schemas import CamelModel


class DatasetCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=256)
    description: str = Field(..., min_length=1)
    category: str
    source: str = Field(..., min_length=1, max_length=256)
    region: str | None = Field(None, max_length=128)
    data: Any
    unit: str | None = Field(None, max_length=32)


class DatasetUpdateRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=256)
    description: str | None = Field(None, min_length=1)
    category: str | None = None
    source: str | None = Field(None, min_length=1, max_length=256)
    region: str | None = Field(None, max_length=128)
    data: Any = None
    unit: str | None = Field(None, max_length=32)


class DatasetResponse(CamelModel):
    id: int
    name: str
    description: str
    category: str
    source: str
    region: str | None = None
    data: Any
    unit: str | None = None
    last_updated: datetime
    created_at: datetime


class DatasetListResponse(CamelModel):
    datasets: list[DatasetResponse]


class DatasetDetailResponse(CamelModel):
    dataset: DatasetResponse


class DatasetMutationResponse(CamelModel):
    message: str
    dataset: DatasetResponse


class ReadingCreateRequest(CamelModel):
    type: str = Field(..., min_length=1, max_length=32)
    value: float
    unit: str = Field(..., min_length=1, max_length=32)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    region: str | None = Field(None, max_length=128)
    source: str | None = Field(None, max_length=64)


class ReadingResponse(CamelModel):
    id: int
    type: str
    value: float
    unit: str
    latitude: float
    longitude: float
    region: str | None = None
    source: str
    recorded_at: datetime
    user_id: int | None = None


class ReadingListResponse(CamelModel):
    readings: list[ReadingResponse]


class ReadingCreateResponse(CamelModel):
    message: str
    reading: ReadingResponse
    points_earned: int


class ReadingStatsResponse(CamelModel):
    average: float
    min: float
    max: float
    count: int


class AggregateResponse(CamelModel):
    region: str
    period: str
    stats: dict[str, ReadingStatsResponse]
    readings: list[ReadingResponse]
