"""Request/response schemas for alert endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from arcticcare.schemas import CamelModel


class AlertCreateRequest(CamelModel):
    type: str
    title: str = Field(..., min_length=1, max_length=256)
    message: str = Field(..., min_length=1)
    region: str | None = Field(None, max_length=128)
    expires_at: datetime | None = None


class AlertUpdateRequest(CamelModel):
    type: str | None = None
    title: str | None = Field(None, min_length=1, max_length=256)
    message: str | None = Field(None, min_length=1)
    region: str | None = Field(None, max_length=128)
    is_active: bool | None = None
    expires_at: datetime | None = None


class AlertResponse(CamelModel):
    id: int
    type: str
    title: str
    message: str
    region: str | None = None
    is_active: bool
    expires_at: datetime | None = None
    created_at: datetime
    issue_id: int | None = None


class AlertListResponse(CamelModel):
    alerts: list[AlertResponse]


class AlertDetailResponse(CamelModel):
    alert: AlertResponse


class AlertMutationResponse(CamelModel):
    message: str
    alert: AlertResponse


class AlertGenerateResponse(CamelModel):
    message: str
    alerts: list[AlertResponse]
