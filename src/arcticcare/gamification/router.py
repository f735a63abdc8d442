"""Badge catalogue, ranking and contribution ledger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user, require_admin
from arcticcare.database import get_session
from arcticcare.db.models import User
from arcticcare.gamification import badge_service, ledger_service, ranking_service
from arcticcare.gamification.exceptions import InvalidInputError
from arcticcare.gamification.schemas import (
    BadgeCatalogResponse,
    BadgeCreateRequest,
    BadgeDetailResponse,
    BadgeResponse,
    BadgeStats,
    ContributionListResponse,
    ContributionListSummary,
    ContributionResponse,
    ContributionSummaryResponse,
    ContributionTypeSummary,
    MyRankResponse,
    RankingEntry,
    RankingResponse,
    RecentUnlock,
    TopRankingEntry,
    TopRankingResponse,
)
from arcticcare.schemas import Pagination

router = APIRouter(prefix="/api", tags=["Gamification"])


def _ranking_entry(entry: ranking_service.RankedUser) -> dict:
    return {
        "rank": entry.rank,
        "id": entry.user.id,
        "name": entry.user.name,
        "avatar": entry.user.avatar,
        "points": entry.points,
        "level": entry.user.level,
        "issues_reported": entry.issues_reported,
        "comments": entry.comments,
        "contributions": entry.contributions,
    }


def _windowed(ranking_type: str) -> bool:
    if ranking_type not in ranking_service.RANKING_TYPES:
        msg = f"Tipo de ranking inválido: {ranking_type} (use global ou monthly)"
        raise InvalidInputError(msg)
    return ranking_type == "monthly"


# ── Badges ──


@router.get("/badges", response_model=BadgeCatalogResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """All badge definitions grouped by category."""
    total, by_category = await badge_service.list_badges_by_category(db)
    return BadgeCatalogResponse(
        total=total,
        categories=list(by_category),
        badges={
            category: [BadgeResponse.model_validate(b) for b in badges]
            for category, badges in by_category.items()
        },
    )


@router.get("/badges/{badge_id}", response_model=BadgeDetailResponse)
async def get_badge(badge_id: int, db: AsyncSession = Depends(get_session)):
    """Single badge with unlock count and the last ten unlocks."""
    badge, total, recent = await badge_service.get_badge_detail(db, badge_id)
    return BadgeDetailResponse(
        **BadgeResponse.model_validate(badge).model_dump(),
        stats=BadgeStats(
            total_unlocked=total,
            recent_unlocks=[
                RecentUnlock(
                    user_id=row.User.id,
                    name=row.User.name,
                    avatar=row.User.avatar,
                    unlocked_at=row.UserBadge.unlocked_at,
                )
                for row in recent
            ],
        ),
    )


@router.post("/badges", response_model=BadgeResponse, status_code=201)
async def create_badge(
    body: BadgeCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    badge = await badge_service.create_badge(
        db,
        name=body.name.strip(),
        description=body.description,
        icon=body.icon,
        requirement=body.requirement,
        points=body.points,
        category=body.category,
    )
    await db.commit()
    return BadgeResponse.model_validate(badge)


# ── Ranking ──


@router.get("/ranking", response_model=RankingResponse)
async def get_ranking(
    type: str = Query("global"),  # noqa: A002
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Paginated ranking. ``monthly`` ranks by points earned this calendar month (UTC)."""
    entries, total = await ranking_service.rank(db, windowed=_windowed(type), page=page, limit=limit)
    return RankingResponse(
        type=type,
        ranking=[RankingEntry(**_ranking_entry(e)) for e in entries],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/ranking/top", response_model=TopRankingResponse)
async def get_top(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_session),
):
    entries = await ranking_service.top(db, limit)
    return TopRankingResponse(
        top=[
            TopRankingEntry(**_ranking_entry(e), medal=ranking_service.MEDALS.get(e.rank))
            for e in entries
        ]
    )


@router.get("/ranking/me", response_model=MyRankResponse)
async def get_my_rank(
    type: str = Query("global"),  # noqa: A002
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The caller's position under the same order as /ranking."""
    windowed = _windowed(type)
    position = await ranking_service.user_rank(db, user.id, windowed=windowed)
    total = await ranking_service.count_ranked(db, windowed=windowed)
    return MyRankResponse(
        type=type,
        rank=position,
        total_users=total,
        percentile=ranking_service.percentile(position, total) if position else None,
        points=user.points,
        level=user.level,
    )


# ── Contributions ──


@router.get("/contributions", response_model=ContributionListResponse)
async def list_contributions(
    limit: int = Query(50, ge=1, le=200),
    type: str | None = Query(None),  # noqa: A002
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The caller's ledger entries, newest first."""
    rows = await ledger_service.list_contributions(db, user.id, limit=limit, type=type)
    return ContributionListResponse(
        contributions=[ContributionResponse.model_validate(c) for c in rows],
        summary=ContributionListSummary(total=len(rows), total_points=sum(c.points for c in rows)),
    )


@router.get("/contributions/summary", response_model=ContributionSummaryResponse)
async def contributions_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    by_type = await ledger_service.summarize_by_type(db, user.id)
    return ContributionSummaryResponse(
        total_points=user.points,
        ledger_points=await ledger_service.ledger_total(db, user.id),
        member_since=user.created_at,
        by_type=[ContributionTypeSummary(**row) for row in by_type],
    )
