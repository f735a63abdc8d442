"""Badge trigger engine: unlocks badges whose requirement just became true."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Badge, UserBadge
from arcticcare.gamification.badge_service import try_unlock
from arcticcare.gamification.exceptions import ConflictError, InvalidInputError
from arcticcare.gamification.requirements import (
    Requirement,
    RequirementKind,
    is_satisfied,
    load_counters,
    parse_requirement,
)

logger = logging.getLogger(__name__)


class TriggerEngine:
    """Evaluates badge requirements after a rewarded action.

    Only badges the user does not hold yet are considered, and only those
    whose counter kind was touched by the action. Point badges are always
    considered since every action awards points. A badge is therefore
    unlocked on the evaluation where its predicate first turns true and is
    never evaluated again for that user.
    """

    def __init__(self, db: AsyncSession, redis: object) -> None:
        self.db = db
        self.redis = redis

    async def _pending_badges(self, user_id: int) -> list[tuple[Badge, Requirement]]:
        """Badges not yet unlocked by the user, with parsed requirements."""
        unlocked = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
        result = await self.db.execute(
            select(Badge).where(Badge.id.not_in(unlocked)).order_by(Badge.points.asc(), Badge.id.asc())
        )
        pending = []
        for badge in result.scalars():
            try:
                pending.append((badge, parse_requirement(badge.requirement)))
            except InvalidInputError:
                logger.warning("Skipping badge %d with invalid requirement: %r", badge.id, badge.requirement)
        return pending

    async def evaluate(self, user_id: int, kinds: Iterable[RequirementKind] = ()) -> list[Badge]:
        """Unlock every pending badge the user now qualifies for.

        Unlocking awards points, which can satisfy a point badge in turn, so
        evaluation repeats until a pass unlocks nothing.
        """
        watched = set(kinds) | {RequirementKind.POINTS}
        awarded: list[Badge] = []

        while True:
            counters = await load_counters(self.db, user_id)
            unlocked_this_pass = False
            for badge, requirement in await self._pending_badges(user_id):
                if requirement.kind not in watched or not is_satisfied(requirement, counters):
                    continue
                try:
                    await try_unlock(self.db, self.redis, user_id, badge.id)
                except ConflictError:
                    continue
                awarded.append(badge)
                unlocked_this_pass = True
                break  # counters changed, re-evaluate from fresh numbers
            if not unlocked_this_pass:
                break

        if awarded:
            names = ", ".join(b.name for b in awarded)
            logger.info("Triggered %d badge(s) for user %d: %s", len(awarded), user_id, names)
        return awarded
