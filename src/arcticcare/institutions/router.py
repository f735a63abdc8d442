"""Institution endpoints: API-key account, report triage and metrics."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import require_admin
from arcticcare.database import get_session
from arcticcare.db.models import Institution, Issue, User
from arcticcare.institutions import metrics, service
from arcticcare.institutions.dependencies import get_institution
from arcticcare.institutions.schemas import (
    ApiKeyResponse,
    CategoryMetricsResponse,
    CategoryShare,
    CriticalReportsResponse,
    InstitutionMeResponse,
    InstitutionRegisterRequest,
    InstitutionRegisterResponse,
    InstitutionResponse,
    MetricsResponse,
    ReportDetail,
    ReportDetailResponse,
    ReportListResponse,
    ReportStatusRequest,
    ReportUpdateResponse,
    ResolutionTimeResponse,
    RiskCount,
    RiskMetricsResponse,
    TodayMetrics,
    TrendDay,
    TrendResponse,
    VoteStats,
)
from arcticcare.issues import service as issues
from arcticcare.issues.schemas import CommentResponse, IssueListItem, IssueResponse
from arcticcare.redis_client import get_optional_redis
from arcticcare.schemas import Pagination

router = APIRouter(prefix="/api/institution", tags=["Institution"])


async def _report_items(db: AsyncSession, reports: list[Issue]) -> list[IssueListItem]:
    counts = await issues.vote_counts(db, [r.id for r in reports])
    return [
        IssueListItem(
            **IssueResponse.model_validate(report).model_dump(),
            upvotes=counts[report.id].upvotes,
            confirms=counts[report.id].confirms,
            comments_count=counts[report.id].comments,
        )
        for report in reports
    ]


def _update_response(message: str, report: Issue, points: int) -> ReportUpdateResponse:
    return ReportUpdateResponse(
        message=message,
        report=IssueResponse.model_validate(report),
        user_rewarded=points > 0,
        points_awarded=points,
    )


# --- Account ---


@router.post("/register", response_model=InstitutionRegisterResponse, status_code=201)
async def register(
    body: InstitutionRegisterRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Register an institution (admin). The API key is only shown in this response."""
    institution, api_key = await service.register(db, body.name, body.email, body.type)
    await db.commit()
    return InstitutionRegisterResponse(
        message="Instituição cadastrada com sucesso! Guarde a API Key em local seguro.",
        institution=InstitutionResponse.model_validate(institution),
        api_key=api_key,
    )


@router.get("/auth/me", response_model=InstitutionMeResponse)
async def me(institution: Institution = Depends(get_institution)):
    return InstitutionMeResponse(institution=InstitutionResponse.model_validate(institution))


@router.post("/auth/api-key/regenerate", response_model=ApiKeyResponse)
async def regenerate_api_key(
    institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    api_key = await service.regenerate_key(db, institution)
    await db.commit()
    return ApiKeyResponse(message="Nova API Key gerada. A anterior foi invalidada.", api_key=api_key)


# --- Reports ---


@router.get("/reports", response_model=ReportListResponse)
async def list_reports(
    status: str | None = None,
    category: str | None = None,
    severity: str | None = None,
    region: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    filters = service.ReportFilters(
        status=status, category=category, severity=severity, region=region, start=start_date, end=end_date
    )
    reports, total = await service.list_reports(db, filters, page=page, limit=limit)
    return ReportListResponse(
        reports=await _report_items(db, reports),
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/reports/critical", response_model=CriticalReportsResponse)
async def critical_reports(
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    reports = await service.critical_reports(db)
    return CriticalReportsResponse(reports=await _report_items(db, reports), total=len(reports))


@router.get("/reports/{report_id}", response_model=ReportDetailResponse)
async def get_report(
    report_id: int,
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    report = await issues.get_issue(db, report_id)
    counts = (await issues.vote_counts(db, [report.id]))[report.id]
    comments = await issues.list_comments(db, report_id)
    return ReportDetailResponse(
        report=ReportDetail(
            **IssueResponse.model_validate(report).model_dump(),
            comments=[CommentResponse.model_validate(c) for c in comments],
            vote_stats=VoteStats(upvotes=counts.upvotes, confirms=counts.confirms),
        )
    )


@router.patch("/reports/{report_id}", response_model=ReportUpdateResponse)
async def update_report_status(
    report_id: int,
    body: ReportStatusRequest,
    institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    report, points = await service.update_report_status(db, redis, report_id, body.status, institution)
    await db.commit()
    return _update_response("Status atualizado!", report, points)


@router.post("/reports/{report_id}/resolve", response_model=ReportUpdateResponse)
async def resolve_report(
    report_id: int,
    institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Resolve a report. The reporter earns the resolution bonus once."""
    report, points = await service.resolve_report(db, redis, report_id, institution)
    await db.commit()
    return _update_response("Ocorrência resolvida!", report, points)


# --- Metrics ---


@router.get("/metrics", response_model=MetricsResponse)
async def overview(
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    data = await metrics.overview(db)
    return MetricsResponse(
        total=data.total,
        by_status=data.by_status,
        critical=data.critical,
        today=TodayMetrics(new_reports=data.new_today, resolved=data.resolved_today),
        resolution_rate=data.resolution_rate,
    )


@router.get("/metrics/by-category", response_model=CategoryMetricsResponse)
async def by_category(
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    total, distribution = await metrics.by_category(db)
    return CategoryMetricsResponse(total=total, distribution=[CategoryShare(**row) for row in distribution])


@router.get("/metrics/by-risk", response_model=RiskMetricsResponse)
async def by_risk(
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    return RiskMetricsResponse(risks=[RiskCount(**row) for row in await metrics.by_risk(db)])


@router.get("/metrics/trend", response_model=TrendResponse)
async def trend(
    days: int = Query(7, ge=1, le=365),
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    return TrendResponse(days=days, trend=[TrendDay(**row) for row in await metrics.trend(db, days=days)])


@router.get("/metrics/resolution-time", response_model=ResolutionTimeResponse)
async def resolution_time(
    _institution: Institution = Depends(get_institution),
    db: AsyncSession = Depends(get_session),
):
    data = await metrics.resolution_time(db)
    return ResolutionTimeResponse(
        total_resolved=data.total_resolved,
        average_hours=data.average_hours,
        average_days=data.average_days,
        by_category=data.by_category,
        by_severity=data.by_severity,
    )
