"""Public statistics endpoints plus the caller's own stats."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user
from arcticcare.database import get_session
from arcticcare.db.models import User
from arcticcare.gamification import ranking_service
from arcticcare.gamification.schemas import ContributionResponse, ContributionTypeSummary, RankingEntry
from arcticcare.stats import service
from arcticcare.stats.schemas import (
    ActivityStats,
    CategoryCount,
    CategoryImpact,
    CommunityBlock,
    CommunityImpactResponse,
    DashboardOverview,
    DashboardResponse,
    LeaderboardResponse,
    MyActivityStats,
    MyStatsResponse,
    MyStatsUser,
    RecentActivity,
    RecentIssue,
    RegionResponse,
    RegionSeverity,
    RegionsResponse,
    SeverityCount,
    StatsUser,
    StatusCount,
    TimelineDayResponse,
    TimelineResponse,
    TopContributor,
    UserStatsResponse,
)
from arcticcare.time_utils import utcnow

router = APIRouter(prefix="/api/stats", tags=["Stats"])


def _activity(stats: service.UserStats) -> dict:
    return {
        "issues_reported": stats.counts.issues,
        "comments": stats.counts.comments,
        "votes": stats.counts.votes,
        "total_contributions": stats.counts.contributions,
    }


def _user_block(stats: service.UserStats) -> dict:
    user = stats.user
    return {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar,
        "points": user.points,
        "level": user.level,
        "created_at": user.created_at,
        "rank": stats.rank,
    }


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: AsyncSession = Depends(get_session)):
    data = await service.dashboard(db)
    return DashboardResponse(
        overview=DashboardOverview(**asdict(data.overview)),
        issues_by_category=[CategoryCount(category=k, count=v) for k, v in data.issues_by_category.items()],
        issues_by_severity=[SeverityCount(severity=k, count=v) for k, v in data.issues_by_severity.items()],
        recent_activity=RecentActivity(issues=data.recent_issues, comments=data.recent_comments, period="7 days"),
    )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Same order as /api/ranking."""
    entries = await ranking_service.top(db, limit)
    return LeaderboardResponse(
        leaderboard=[
            RankingEntry(
                rank=e.rank,
                id=e.user.id,
                name=e.user.name,
                avatar=e.user.avatar,
                points=e.points,
                level=e.user.level,
                issues_reported=e.issues_reported,
                comments=e.comments,
                contributions=e.contributions,
            )
            for e in entries
        ]
    )


@router.get("/me", response_model=MyStatsResponse)
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    stats, total_users, contributions, issues = await service.my_stats(db, user.id)
    return MyStatsResponse(
        user=MyStatsUser(**_user_block(stats), total_users=total_users),
        stats=MyActivityStats(**_activity(stats), percentile=ranking_service.percentile(stats.rank, total_users)),
        recent_contributions=[ContributionResponse.model_validate(c) for c in contributions],
        recent_issues=[RecentIssue.model_validate(i) for i in issues],
    )


@router.get("/user/{user_id}", response_model=UserStatsResponse)
async def user_stats(user_id: int, db: AsyncSession = Depends(get_session)):
    stats = await service.user_stats(db, user_id)
    return UserStatsResponse(
        user=StatsUser(**_user_block(stats)),
        stats=ActivityStats(**_activity(stats)),
        contributions_by_type=[ContributionTypeSummary(**row) for row in stats.contributions_by_type],
        issues_by_status=[StatusCount(status=k, count=v) for k, v in stats.issues_by_status.items()],
    )


@router.get("/timeline", response_model=TimelineResponse)
async def timeline(
    period: str = "30d",
    category: str | None = None,
    db: AsyncSession = Depends(get_session),
):
    start, end, total, days = await service.timeline(db, period=period, category=category)
    return TimelineResponse(
        period=period,
        start_date=start,
        end_date=end,
        total_issues=total,
        timeline=[TimelineDayResponse(**asdict(day)) for day in days],
    )


@router.get("/regions", response_model=RegionsResponse)
async def regions(db: AsyncSession = Depends(get_session)):
    return RegionsResponse(
        regions=[
            RegionResponse(
                region=r.region,
                total_issues=r.total_issues,
                severity=[RegionSeverity(level=k, count=v) for k, v in r.severity.items()],
                status=[StatusCount(status=k, count=v) for k, v in r.status.items()],
            )
            for r in await service.regions(db)
        ]
    )


@router.get("/community-impact", response_model=CommunityImpactResponse)
async def community_impact(db: AsyncSession = Depends(get_session)):
    totals, impact, breakdown, top = await service.community_impact(db)
    return CommunityImpactResponse(
        community=CommunityBlock(
            total_members=totals.members,
            total_points=totals.total_points,
            total_contributions=totals.contributions,
            issues_reported=totals.issues_reported,
            issues_resolved=totals.issues_resolved,
            confirmations=totals.confirmations,
        ),
        environmental_impact=impact,
        issue_breakdown=[CategoryImpact(**row) for row in breakdown],
        top_contributors=[
            TopContributor(rank=e.rank, id=e.user.id, name=e.user.name, avatar=e.user.avatar, points=e.points)
            for e in top
        ],
        last_updated=utcnow(),
    )
