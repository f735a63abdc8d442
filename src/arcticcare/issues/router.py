"""Issue endpoints: reports, votes, comments, resolution and nearby search."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.auth.dependencies import get_current_user, get_optional_user, require_admin
from arcticcare.database import get_session
from arcticcare.db.models import Issue, User
from arcticcare.issues import service
from arcticcare.issues.schemas import (
    CommentCreateRequest,
    CommentCreateResponse,
    CommentResponse,
    IssueCreateRequest,
    IssueCreateResponse,
    IssueDetail,
    IssueDetailResponse,
    IssueListItem,
    IssueListResponse,
    IssueResponse,
    IssueUpdateRequest,
    IssueUpdateResponse,
    NearbyResponse,
    ResolveResponse,
    VoteRequest,
    VoteResponse,
)
from arcticcare.redis_client import get_optional_redis
from arcticcare.schemas import Pagination

router = APIRouter(prefix="/api/issues", tags=["Issues"])


async def _list_items(db: AsyncSession, issues: list[Issue], viewer: User | None) -> list[IssueListItem]:
    ids = [i.id for i in issues]
    counts = await service.vote_counts(db, ids)
    votes = await service.user_votes(db, viewer.id if viewer else None, ids)
    return [
        IssueListItem(
            **IssueResponse.model_validate(issue).model_dump(),
            upvotes=counts[issue.id].upvotes,
            confirms=counts[issue.id].confirms,
            comments_count=counts[issue.id].comments,
            user_vote=votes.get(issue.id),
        )
        for issue in issues
    ]


@router.get("", response_model=IssueListResponse)
async def list_issues(
    category: str | None = None,
    severity: str | None = None,
    status: str | None = None,
    region: str | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("reportedAt", alias="sortBy"),
    order: str = Query("desc"),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    filters = service.IssueFilters(
        category=category, severity=severity, status=status, region=region, search=search
    )
    issues, total = await service.list_issues(db, filters, page=page, limit=limit, sort_by=sort_by, order=order)
    return IssueListResponse(
        issues=await _list_items(db, issues, viewer),
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/nearby/{lat}/{lng}", response_model=NearbyResponse)
async def nearby(
    lat: float,
    lng: float,
    radius: float = Query(50, description="Raio em km"),
    db: AsyncSession = Depends(get_session),
):
    issues = await service.nearby_issues(db, lat, lng, radius)
    return NearbyResponse(issues=await _list_items(db, issues, None))


@router.get("/{issue_id}", response_model=IssueDetailResponse)
async def get_issue(
    issue_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    issue = await service.get_issue(db, issue_id)
    (item,) = await _list_items(db, [issue], viewer)
    comments = await service.list_comments(db, issue_id)
    return IssueDetailResponse(
        issue=IssueDetail(
            **item.model_dump(),
            comments=[CommentResponse.model_validate(c) for c in comments],
        )
    )


@router.post("", response_model=IssueCreateResponse, status_code=201)
async def create_issue(
    body: IssueCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Report an issue. Critical reports earn 50 points, high 30, others 20."""
    issue, points = await service.create_issue(db, redis, user.id, **body.model_dump())
    await db.commit()
    return IssueCreateResponse(
        message="Ocorrência criada com sucesso!",
        issue=IssueResponse.model_validate(issue),
        points_earned=points,
    )


@router.put("/{issue_id}", response_model=IssueUpdateResponse)
async def update_issue(
    issue_id: int,
    body: IssueUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    try:
        issue = await service.update_issue(db, redis, issue_id, user, body.model_dump(exclude_unset=True))
    except service.PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return IssueUpdateResponse(message="Ocorrência atualizada!", issue=IssueResponse.model_validate(issue))


@router.delete("/{issue_id}")
async def delete_issue(
    issue_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    try:
        await service.delete_issue(db, issue_id, user)
    except service.PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return {"message": "Ocorrência excluída com sucesso!"}


@router.post("/{issue_id}/vote", response_model=VoteResponse)
async def vote(
    issue_id: int,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Toggle an upvote or confirmation."""
    voted, points = await service.toggle_vote(db, redis, issue_id, user.id, body.type)
    await db.commit()
    return VoteResponse(
        message="Voto registrado!" if voted else "Voto removido",
        voted=voted,
        points_earned=points,
    )


@router.post("/{issue_id}/comments", response_model=CommentCreateResponse, status_code=201)
async def add_comment(
    issue_id: int,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    comment, points = await service.add_comment(db, redis, issue_id, user.id, body.content)
    await db.commit()
    return CommentCreateResponse(
        message="Comentário adicionado!",
        comment=CommentResponse.model_validate(comment),
        points_earned=points,
    )


@router.delete("/{issue_id}/comments/{comment_id}")
async def delete_comment(
    issue_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    try:
        await service.delete_comment(db, issue_id, comment_id, user)
    except service.PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return {"message": "Comentário excluído!"}


@router.post("/{issue_id}/resolve", response_model=ResolveResponse)
async def resolve(
    issue_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Mark resolved (admin). The reporter earns the resolution bonus once."""
    issue, points = await service.resolve_issue(db, redis, issue_id)
    await db.commit()
    return ResolveResponse(
        message="Ocorrência resolvida!",
        issue=IssueResponse.model_validate(issue),
        points_awarded=points,
    )
