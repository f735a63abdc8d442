"""Request/response schemas for issue endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from arcticcare.schemas import CamelModel, Pagination


class UserRef(CamelModel):
    id: int
    name: str
    avatar: str | None = None


class IssueCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field(..., min_length=1)
    category: str
    severity: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str | None = None
    region: str | None = Field(None, max_length=128)
    images: list[str] | None = None


class IssueUpdateRequest(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=256)
    description: str | None = Field(None, min_length=1)
    category: str | None = None
    severity: str | None = None
    status: str | None = None
    address: str | None = None
    region: str | None = Field(None, max_length=128)
    images: list[str] | None = None


class IssueResponse(CamelModel):
    id: int
    title: str
    description: str
    category: str
    severity: str
    status: str
    latitude: float
    longitude: float
    address: str | None = None
    region: str | None = None
    images: list[str] | None = None
    reported_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    user_id: int
    user: UserRef


class IssueListItem(IssueResponse):
    upvotes: int = 0
    confirms: int = 0
    comments_count: int = 0
    user_vote: str | None = None


class IssueListResponse(CamelModel):
    issues: list[IssueListItem]
    pagination: Pagination


class CommentResponse(CamelModel):
    id: int
    content: str
    created_at: datetime
    issue_id: int
    user_id: int
    user: UserRef


class IssueDetail(IssueListItem):
    comments: list[CommentResponse]


class IssueDetailResponse(CamelModel):
    issue: IssueDetail


class IssueCreateResponse(CamelModel):
    message: str
    issue: IssueResponse
    points_earned: int


class IssueUpdateResponse(CamelModel):
    message: str
    issue: IssueResponse


class VoteRequest(CamelModel):
    type: str


class VoteResponse(CamelModel):
    message: str
    voted: bool
    points_earned: int = 0


class CommentCreateRequest(CamelModel):
    content: str = Field(..., max_length=5000)


class CommentCreateResponse(CamelModel):
    message: str
    comment: CommentResponse
    points_earned: int


class ResolveResponse(CamelModel):
    message: str
    issue: IssueResponse
    points_awarded: int


class NearbyResponse(CamelModel):
    issues: list[IssueListItem]
