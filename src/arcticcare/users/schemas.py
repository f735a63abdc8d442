"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from arcticcare.gamification.schemas import UnlockedBadge
from arcticcare.schemas import CamelModel

# --- Profile ---


class ProfileStats(CamelModel):
    issues_reported: int
    comments: int
    contributions: int


class PublicUser(CamelModel):
    id: int
    name: str
    avatar: str | None = None
    points: int
    level: int
    role: str
    current_streak: int
    longest_streak: int
    last_active_at: datetime
    member_since: datetime
    stats: ProfileStats


class IssueSummary(CamelModel):
    id: int
    title: str
    category: str
    severity: str
    status: str
    reported_at: datetime


class ProfileResponse(CamelModel):
    user: PublicUser
    recent_issues: list[IssueSummary]


# --- Points ---


class PointsUser(CamelModel):
    id: int
    name: str
    avatar: str | None = None
    points: int
    level: int
    rank: int
    total_users: int
    percentile: float


class PointsStats(CamelModel):
    issues_reported: int
    comments: int
    votes: int
    contributions: int


class PointsResponse(CamelModel):
    user: PointsUser
    stats: PointsStats


class PointsUpdateRequest(CamelModel):
    points: int | None = None
    type: str = "data_submitted"
    description: str | None = Field(None, max_length=512)
    action: str = "add"


class PointsUpdateUser(CamelModel):
    id: int
    points: int
    level: int


class PointsUpdateResponse(CamelModel):
    message: str
    user: PointsUpdateUser
    leveled_up: bool


# --- Gamification ---


class UserRef(CamelModel):
    id: int
    name: str
    avatar: str | None = None


class GamificationBlock(CamelModel):
    points: int
    level: int
    rank: int
    level_progress: float
    points_to_next_level: int


class StreakBlock(CamelModel):
    current: int
    longest: int
    last_active: datetime
    active: bool


class EarnedBadge(CamelModel):
    id: int
    name: str
    description: str
    icon: str
    unlocked_at: datetime


class GamificationStats(CamelModel):
    total_badges: int
    issues_reported: int
    comments: int
    votes: int
    contributions: int
    member_since: datetime


class GamificationResponse(CamelModel):
    user: UserRef
    gamification: GamificationBlock
    streak: StreakBlock
    badges: list[EarnedBadge]
    stats: GamificationStats


# --- Badges ---


class UserBadgeEntry(CamelModel):
    id: int
    name: str
    description: str
    icon: str
    points: int
    category: str
    unlocked: bool
    unlocked_at: datetime | None = None


class UserBadgesResponse(CamelModel):
    unlocked: int
    total: int
    badges: list[UserBadgeEntry]


class BadgeUnlockRequest(CamelModel):
    badge_id: int | None = None


class UserBadgeUnlockResponse(CamelModel):
    message: str
    badge: UnlockedBadge


# --- Streak ---


class Milestone(CamelModel):
    days: int
    reward: str


class StreakResponse(CamelModel):
    user_id: int
    current_streak: int
    longest_streak: int
    last_active_at: datetime
    streak_active: bool
    next_milestone: Milestone


class StreakState(CamelModel):
    current_streak: int
    longest_streak: int
    last_active_at: datetime


class StreakTouchResponse(CamelModel):
    message: str
    streak: StreakState
    streak_broken: bool
    bonus_points: int


# --- Impact ---


class ImpactMetric(CamelModel):
    value: float
    unit: str
    description: str


class ImpactActivity(CamelModel):
    issues_reported: int
    confirmations: int


class ImpactResponse(CamelModel):
    user_id: int
    user_name: str
    impact: dict[str, ImpactMetric]
    activity: ImpactActivity
