"""Request/response schemas for institution endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from arcticcare.issues.schemas import CommentResponse, IssueListItem, IssueResponse
from arcticcare.schemas import CamelModel, Pagination


class InstitutionRegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=256)
    email: EmailStr
    type: str


class InstitutionResponse(CamelModel):
    id: int
    name: str
    email: str
    type: str
    is_active: bool
    created_at: datetime


class InstitutionRegisterResponse(CamelModel):
    message: str
    institution: InstitutionResponse
    api_key: str


class InstitutionMeResponse(CamelModel):
    institution: InstitutionResponse


class ApiKeyResponse(CamelModel):
    message: str
    api_key: str


class ReportListResponse(CamelModel):
    reports: list[IssueListItem]
    pagination: Pagination


class CriticalReportsResponse(CamelModel):
    reports: list[IssueListItem]
    total: int


class VoteStats(CamelModel):
    upvotes: int
    confirms: int


class ReportDetail(IssueResponse):
    comments: list[CommentResponse]
    vote_stats: VoteStats


class ReportDetailResponse(CamelModel):
    report: ReportDetail


class ReportStatusRequest(CamelModel):
    status: str


class ReportUpdateResponse(CamelModel):
    message: str
    report: IssueResponse
    user_rewarded: bool
    points_awarded: int


class TodayMetrics(CamelModel):
    new_reports: int
    resolved: int


class MetricsResponse(CamelModel):
    total: int
    by_status: dict[str, int]
    critical: int
    today: TodayMetrics
    resolution_rate: int


class CategoryShare(CamelModel):
    category: str
    count: int
    percentage: int


class CategoryMetricsResponse(CamelModel):
    total: int
    distribution: list[CategoryShare]


class RiskCount(CamelModel):
    severity: str
    count: int


class RiskMetricsResponse(CamelModel):
    risks: list[RiskCount]


class TrendDay(CamelModel):
    date: str
    reported: int
    resolved: int


class TrendResponse(CamelModel):
    days: int
    trend: list[TrendDay]


class ResolutionTimeResponse(CamelModel):
    total_resolved: int
    average_hours: int
    average_days: float
    by_category: dict[str, int]
    by_severity: dict[str, int]
