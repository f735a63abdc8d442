"""Response schemas for statistics endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from arcticcare.gamification.schemas import ContributionResponse, ContributionTypeSummary, RankingEntry
from arcticcare.schemas import CamelModel


class DashboardOverview(CamelModel):
    total_issues: int
    open_issues: int
    resolved_issues: int
    critical_issues: int
    total_users: int
    active_alerts: int
    total_datasets: int
    total_readings: int


class CategoryCount(CamelModel):
    category: str
    count: int


class SeverityCount(CamelModel):
    severity: str
    count: int


class StatusCount(CamelModel):
    status: str
    count: int


class RecentActivity(CamelModel):
    issues: int
    comments: int
    period: str


class DashboardResponse(CamelModel):
    overview: DashboardOverview
    issues_by_category: list[CategoryCount]
    issues_by_severity: list[SeverityCount]
    recent_activity: RecentActivity


class LeaderboardResponse(CamelModel):
    leaderboard: list[RankingEntry]


class StatsUser(CamelModel):
    id: int
    name: str
    avatar: str | None = None
    points: int
    level: int
    created_at: datetime
    rank: int


class MyStatsUser(StatsUser):
    total_users: int


class ActivityStats(CamelModel):
    issues_reported: int
    comments: int
    votes: int
    total_contributions: int


class MyActivityStats(ActivityStats):
    percentile: float


class UserStatsResponse(CamelModel):
    user: StatsUser
    stats: ActivityStats
    contributions_by_type: list[ContributionTypeSummary]
    issues_by_status: list[StatusCount]


class RecentIssue(CamelModel):
    id: int
    title: str
    category: str
    severity: str
    status: str
    reported_at: datetime


class MyStatsResponse(CamelModel):
    user: MyStatsUser
    stats: MyActivityStats
    recent_contributions: list[ContributionResponse]
    recent_issues: list[RecentIssue]


class TimelineDayResponse(CamelModel):
    date: str
    total: int
    by_category: dict[str, int]
    by_severity: dict[str, int]


class TimelineResponse(CamelModel):
    period: str
    start_date: datetime
    end_date: datetime
    total_issues: int
    timeline: list[TimelineDayResponse]


class RegionSeverity(CamelModel):
    level: str
    count: int


class RegionResponse(CamelModel):
    region: str
    total_issues: int
    severity: list[RegionSeverity]
    status: list[StatusCount]


class RegionsResponse(CamelModel):
    regions: list[RegionResponse]


class CommunityBlock(CamelModel):
    total_members: int
    total_points: int
    total_contributions: int
    issues_reported: int
    issues_resolved: int
    confirmations: int


class CategoryImpact(CamelModel):
    category: str
    count: int
    impact: str


class TopContributor(CamelModel):
    rank: int
    id: int
    name: str
    avatar: str | None = None
    points: int


class CommunityImpactResponse(CamelModel):
    community: CommunityBlock
    environmental_impact: dict[str, dict[str, Any]]
    issue_breakdown: list[CategoryImpact]
    top_contributors: list[TopContributor]
    last_updated: datetime
