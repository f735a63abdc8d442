"""User endpoints: public profile, points, gamification, badges, streak and impact."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user, require_admin
from arcticcare.config import get_settings
from arcticcare.database import get_session
from arcticcare.db.models import User
from arcticcare.gamification import badge_service, ranking_service, streak_service
from arcticcare.gamification.exceptions import InvalidInputError
from arcticcare.gamification.levels import compute_level
from arcticcare.gamification.schemas import UnlockedBadge
from arcticcare.gamification.trigger_engine import TriggerEngine
from arcticcare.redis_client import get_optional_redis
from arcticcare.users import service
from arcticcare.users.schemas import (
    BadgeUnlockRequest,
    EarnedBadge,
    GamificationBlock,
    GamificationResponse,
    GamificationStats,
    ImpactActivity,
    ImpactResponse,
    IssueSummary,
    PointsResponse,
    PointsStats,
    PointsUpdateRequest,
    PointsUpdateResponse,
    PointsUpdateUser,
    PointsUser,
    ProfileResponse,
    ProfileStats,
    PublicUser,
    StreakBlock,
    StreakResponse,
    StreakState,
    StreakTouchResponse,
    UserBadgeEntry,
    UserBadgesResponse,
    UserBadgeUnlockResponse,
    UserRef,
)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _grace() -> timedelta:
    return timedelta(hours=get_settings().streak_grace_hours)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(user_id: int, db: AsyncSession = Depends(get_session)):
    """Public profile with activity counts and the five latest reports."""
    user = await service.get_user(db, user_id)
    counts = await service.get_counts(db, user_id)
    issues = await service.recent_issues(db, user_id)
    return ProfileResponse(
        user=PublicUser(
            id=user.id,
            name=user.name,
            avatar=user.avatar,
            points=user.points,
            level=user.level,
            role=user.role,
            current_streak=streak_service.displayed_streak(user, grace=_grace()),
            longest_streak=user.longest_streak,
            last_active_at=user.last_active_at,
            member_since=user.created_at,
            stats=ProfileStats(
                issues_reported=counts.issues,
                comments=counts.comments,
                contributions=counts.contributions,
            ),
        ),
        recent_issues=[IssueSummary.model_validate(i) for i in issues],
    )


@router.get("/{user_id}/points", response_model=PointsResponse)
async def get_points(user_id: int, db: AsyncSession = Depends(get_session)):
    user = await service.get_user(db, user_id)
    counts = await service.get_counts(db, user_id)
    position = await ranking_service.user_rank(db, user_id)
    total = await ranking_service.count_users(db)
    return PointsResponse(
        user=PointsUser(
            id=user.id,
            name=user.name,
            avatar=user.avatar,
            points=user.points,
            level=user.level,
            rank=position,
            total_users=total,
            percentile=ranking_service.percentile(position, total),
        ),
        stats=PointsStats(
            issues_reported=counts.issues,
            comments=counts.comments,
            votes=counts.votes,
            contributions=counts.contributions,
        ),
    )


@router.put("/{user_id}/points", response_model=PointsUpdateResponse)
async def update_points(
    user_id: int,
    body: PointsUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Manual award (admin). Recorded in the ledger like any other reward."""
    user, leveled_up = await service.admin_award_points(
        db,
        redis,
        user_id,
        points=body.points,
        type=body.type,
        description=body.description,
        action=body.action,
    )
    await db.commit()
    return PointsUpdateResponse(
        message="Pontos atualizados!",
        user=PointsUpdateUser(id=user.id, points=user.points, level=user.level),
        leveled_up=leveled_up,
    )


@router.get("/{user_id}/gamification", response_model=GamificationResponse)
async def get_gamification(user_id: int, db: AsyncSession = Depends(get_session)):
    """Points, level progress, rank, streak and earned badges in one call."""
    user = await service.get_user(db, user_id)
    counts = await service.get_counts(db, user_id)
    position = await ranking_service.user_rank(db, user_id)
    level = compute_level(user.points)
    earned = await badge_service.get_user_badges(db, user_id)
    grace = _grace()

    return GamificationResponse(
        user=UserRef(id=user.id, name=user.name, avatar=user.avatar),
        gamification=GamificationBlock(
            points=user.points,
            level=user.level,
            rank=position,
            level_progress=level["progress"],
            points_to_next_level=level["points_to_next_level"],
        ),
        streak=StreakBlock(
            current=streak_service.displayed_streak(user, grace=grace),
            longest=user.longest_streak,
            last_active=user.last_active_at,
            active=streak_service.is_active(user, grace=grace),
        ),
        badges=[
            EarnedBadge(
                id=ub.badge.id,
                name=ub.badge.name,
                description=ub.badge.description,
                icon=ub.badge.icon,
                unlocked_at=ub.unlocked_at,
            )
            for ub in earned
        ],
        stats=GamificationStats(
            total_badges=counts.badges,
            issues_reported=counts.issues,
            comments=counts.comments,
            votes=counts.votes,
            contributions=counts.contributions,
            member_since=user.created_at,
        ),
    )


# ── Badges ──


@router.get("/{user_id}/badges", response_model=UserBadgesResponse)
async def get_user_badges(user_id: int, db: AsyncSession = Depends(get_session)):
    """Every badge with the user's lock state."""
    await service.get_user(db, user_id)
    unlocked, overview = await badge_service.get_badge_overview(db, user_id)
    return UserBadgesResponse(
        unlocked=unlocked,
        total=len(overview),
        badges=[
            UserBadgeEntry(
                id=item["badge"].id,
                name=item["badge"].name,
                description=item["badge"].description,
                icon=item["badge"].icon,
                points=item["badge"].points,
                category=item["badge"].category,
                unlocked=item["unlocked"],
                unlocked_at=item["unlocked_at"],
            )
            for item in overview
        ],
    )


@router.post("/{user_id}/badges", response_model=UserBadgeUnlockResponse, status_code=201)
async def unlock_badge(
    user_id: int,
    body: BadgeUnlockRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Grant a badge manually (admin). 409 if the user already has it."""
    if body.badge_id is None:
        msg = "ID do badge é obrigatório"
        raise InvalidInputError(msg)

    result = await badge_service.try_unlock(db, redis, user_id, body.badge_id)
    await TriggerEngine(db, redis).evaluate(user_id)
    await db.commit()

    badge = result.badge
    return UserBadgeUnlockResponse(
        message="Badge desbloqueado!",
        badge=UnlockedBadge(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            points_earned=result.points_earned,
        ),
    )


# ── Streak ──


@router.get("/{user_id}/streak", response_model=StreakResponse)
async def get_streak(user_id: int, db: AsyncSession = Depends(get_session)):
    """Streak as displayed: zero once the grace window has lapsed."""
    user = await service.get_user(db, user_id)
    grace = _grace()
    displayed = streak_service.displayed_streak(user, grace=grace)
    return StreakResponse(
        user_id=user.id,
        current_streak=displayed,
        longest_streak=user.longest_streak,
        last_active_at=user.last_active_at,
        streak_active=streak_service.is_active(user, grace=grace),
        next_milestone=streak_service.next_milestone(displayed),
    )


@router.put("/{user_id}/streak", response_model=StreakTouchResponse)
async def touch_streak(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Record today's activity for the caller (admins may touch anyone)."""
    if user.id != user_id and user.role != "admin":
        raise HTTPException(status_code=403, detail="Acesso negado")

    update = await streak_service.touch(db, redis, user_id)
    if update.bonus_points:
        await TriggerEngine(db, redis).evaluate(user_id)
    await db.commit()

    return StreakTouchResponse(
        message="Streak reiniciado" if update.streak_broken else "Streak atualizado!",
        streak=StreakState(
            current_streak=update.current_streak,
            longest_streak=update.longest_streak,
            last_active_at=update.last_active_at,
        ),
        streak_broken=update.streak_broken,
        bonus_points=update.bonus_points,
    )


# ── Impact ──


@router.get("/{user_id}/impact", response_model=ImpactResponse)
async def get_impact(user_id: int, db: AsyncSession = Depends(get_session)):
    """Impact estimates, computed from current activity on every read."""
    user = await service.get_user(db, user_id)
    counts = await service.get_counts(db, user_id)
    return ImpactResponse(
        user_id=user.id,
        user_name=user.name,
        impact=service.compute_impact(counts),
        activity=ImpactActivity(issues_reported=counts.issues, confirmations=counts.votes),
    )
