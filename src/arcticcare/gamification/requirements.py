"""Badge requirement predicates.

A requirement is a single-key mapping from a counter kind to a threshold,
stored as JSON on the badge row: {"issues": 10}, {"confirms": 20},
{"comments": 50} or {"points": 500}.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Comment, Issue, User, Vote
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError


class RequirementKind(str, Enum):
    ISSUES = "issues"
    CONFIRMS = "confirms"
    COMMENTS = "comments"
    POINTS = "points"


@dataclass(frozen=True)
class Requirement:
    kind: RequirementKind
    threshold: int

    def to_json(self) -> dict[str, int]:
        return {self.kind.value: self.threshold}


@dataclass(frozen=True)
class UserCounters:
    issues: int = 0
    confirms: int = 0
    comments: int = 0
    points: int = 0

    def value_for(self, kind: RequirementKind) -> int:
        return getattr(self, kind.value)


def parse_requirement(raw: Any) -> Requirement:  # noqa: ANN401
    """Parse a requirement from a dict or its JSON text.

    Raises:
        InvalidInputError: Unknown kind, more than one key, or a threshold that
            is not a positive integer.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            msg = "Requisito inválido: JSON malformado"
            raise InvalidInputError(msg) from None

    if not isinstance(raw, dict) or len(raw) != 1:
        msg = "Requisito inválido: informe exatamente um critério"
        raise InvalidInputError(msg)

    (key, value), = raw.items()
    try:
        kind = RequirementKind(key)
    except ValueError:
        kinds = ", ".join(k.value for k in RequirementKind)
        msg = f"Requisito inválido: '{key}' (use {kinds})"
        raise InvalidInputError(msg) from None

    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        msg = "Requisito inválido: o valor deve ser um inteiro positivo"
        raise InvalidInputError(msg)

    return Requirement(kind=kind, threshold=value)


def is_satisfied(requirement: Requirement, counters: UserCounters) -> bool:
    return counters.value_for(requirement.kind) >= requirement.threshold


async def load_counters(db: AsyncSession, user_id: int) -> UserCounters:
    """Current counters for every requirement kind in a single round trip."""
    issues = select(func.count(Issue.id)).where(Issue.user_id == user_id).scalar_subquery()
    confirms = (
        select(func.count(Vote.id))
        .where(Vote.user_id == user_id, Vote.type == "confirm")
        .scalar_subquery()
    )
    comments = select(func.count(Comment.id)).where(Comment.user_id == user_id).scalar_subquery()

    result = await db.execute(
        select(User.points, issues, confirms, comments).where(User.id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        msg = "Usuário não encontrado"
        raise NotFoundError(msg)

    points, issue_count, confirm_count, comment_count = row
    return UserCounters(
        issues=issue_count,
        confirms=confirm_count,
        comments=comment_count,
        points=points,
    )
