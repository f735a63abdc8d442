"""Pydantic models for badge, ranking and contribution endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from arcticcare.schemas import CamelModel, Pagination

# --- Badge ---


class BadgeResponse(CamelModel):
    id: int
    name: str
    description: str
    icon: str
    requirement: dict[str, Any]
    points: int
    category: str
    created_at: datetime


class BadgeCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(..., min_length=1)
    icon: str = Field(..., min_length=1, max_length=64)
    requirement: dict[str, Any] | str
    points: int
    category: str | None = Field(None, max_length=32)


class BadgeCatalogResponse(CamelModel):
    total: int
    categories: list[str]
    badges: dict[str, list[BadgeResponse]]


class RecentUnlock(CamelModel):
    user_id: int
    name: str
    avatar: str | None = None
    unlocked_at: datetime


class BadgeStats(CamelModel):
    total_unlocked: int
    recent_unlocks: list[RecentUnlock]


class BadgeDetailResponse(BadgeResponse):
    stats: BadgeStats


class UnlockedBadge(CamelModel):
    """Badge unlock result: the badge plus the points it granted."""

    id: int
    name: str
    description: str
    icon: str
    points_earned: int


class BadgeUnlockResponse(CamelModel):
    message: str
    badge: UnlockedBadge
    total_points: int
    unlocked_at: datetime


# --- Ranking ---


class RankingEntry(CamelModel):
    rank: int
    id: int
    name: str
    avatar: str | None = None
    points: int
    level: int
    issues_reported: int
    comments: int
    contributions: int


class RankingResponse(CamelModel):
    type: str
    ranking: list[RankingEntry]
    pagination: Pagination


class TopRankingEntry(RankingEntry):
    medal: str | None = None


class TopRankingResponse(CamelModel):
    top: list[TopRankingEntry]


class MyRankResponse(CamelModel):
    type: str
    rank: int | None
    total_users: int
    percentile: float | None
    points: int
    level: int


# --- Contributions ---


class ContributionResponse(CamelModel):
    id: int
    type: str
    points: int
    description: str | None = None
    created_at: datetime


class ContributionListSummary(CamelModel):
    total: int
    total_points: int


class ContributionListResponse(CamelModel):
    contributions: list[ContributionResponse]
    summary: ContributionListSummary


class ContributionTypeSummary(CamelModel):
    type: str
    count: int
    points: int


class ContributionSummaryResponse(CamelModel):
    total_points: int
    ledger_points: int
    member_since: datetime
    by_type: list[ContributionTypeSummary]
