"""Ranking tests: total order with tie-break, rank/list agreement, monthly window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from arcticcare.db.models import Contribution
from arcticcare.gamification.exceptions import NotFoundError
from arcticcare.gamification.ledger_service import award
from arcticcare.gamification.ranking_service import count_ranked, percentile, rank, top, user_rank

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


async def _users_with_points(db, user_factory, points_list, start=NOW - timedelta(days=90)):
    users = []
    for i, points in enumerate(points_list):
        user = await user_factory(name=f"U{i}", created_at=start + timedelta(minutes=i))
        if points:
            await award(db, None, user.id, "data_submitted", points, "seed")
        users.append(user)
    await db.commit()
    return users


class TestGlobalRanking:
    @pytest.mark.asyncio
    async def test_points_descending(self, db_session, user_factory):
        a, b, c = await _users_with_points(db_session, user_factory, [450, 320, 280])

        entries, total = await rank(db_session, page=1, limit=10)
        assert total == 3
        assert [(e.user.id, e.rank) for e in entries] == [(a.id, 1), (b.id, 2), (c.id, 3)]
        assert [e.points for e in entries] == [450, 320, 280]

    @pytest.mark.asyncio
    async def test_ties_break_on_signup_time_then_id(self, db_session, user_factory):
        early, late, other = await _users_with_points(db_session, user_factory, [100, 100, 200])

        entries, _ = await rank(db_session)
        assert [e.user.id for e in entries] == [other.id, early.id, late.id]

    @pytest.mark.asyncio
    async def test_user_rank_matches_list_position(self, db_session, user_factory):
        users = await _users_with_points(db_session, user_factory, [50, 300, 50, 0, 300, 120])

        entries, _ = await rank(db_session, limit=50)
        for entry in entries:
            assert await user_rank(db_session, entry.user.id) == entry.rank
        assert {e.user.id for e in entries} == {u.id for u in users}

    @pytest.mark.asyncio
    async def test_pagination_offsets_ranks(self, db_session, user_factory):
        await _users_with_points(db_session, user_factory, [60, 50, 40, 30, 20])
        entries, total = await rank(db_session, page=2, limit=2)
        assert total == 5
        assert [e.rank for e in entries] == [3, 4]
        assert [e.points for e in entries] == [40, 30]

    @pytest.mark.asyncio
    async def test_top_and_activity_counts(self, db_session, user_factory):
        (a,) = await _users_with_points(db_session, user_factory, [10])
        (entry,) = await top(db_session, 1)
        assert entry.user.id == a.id
        assert entry.issues_reported == 0
        assert entry.comments == 0
        assert entry.contributions == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await user_rank(db_session, 999)


class TestMonthlyRanking:
    """Orders by points earned since the first instant of the month (UTC)."""

    async def _add(self, db, user, points, when):
        db.add(Contribution(user_id=user.id, type="data_submitted", points=points, description="x", created_at=when))
        user.points += points

    @pytest.mark.asyncio
    async def test_only_this_month_counts(self, db_session, user_factory):
        # Deliberate change: the legacy API computed the month start but still ranked
        # by lifetime points. Here the window filters the ledger.
        veteran = await user_factory(name="Veterana", created_at=NOW - timedelta(days=200))
        newcomer = await user_factory(name="Novata", created_at=NOW - timedelta(days=5))
        idle = await user_factory(name="Parada", created_at=NOW - timedelta(days=300))

        await self._add(db_session, veteran, 1000, datetime(2026, 2, 27, tzinfo=timezone.utc))
        await self._add(db_session, veteran, 20, datetime(2026, 3, 2, tzinfo=timezone.utc))
        await self._add(db_session, newcomer, 80, datetime(2026, 3, 10, tzinfo=timezone.utc))
        await self._add(db_session, idle, 500, datetime(2026, 1, 5, tzinfo=timezone.utc))
        await db_session.commit()

        entries, total = await rank(db_session, windowed=True, now=NOW)
        assert total == 2
        assert [(e.user.id, e.points) for e in entries] == [(newcomer.id, 80), (veteran.id, 20)]

        assert await user_rank(db_session, newcomer.id, windowed=True, now=NOW) == 1
        assert await user_rank(db_session, veteran.id, windowed=True, now=NOW) == 2
        assert await user_rank(db_session, idle.id, windowed=True, now=NOW) is None
        assert await count_ranked(db_session, windowed=True, now=NOW) == 2

        # Lifetime order is different
        assert await user_rank(db_session, veteran.id) == 1

    @pytest.mark.asyncio
    async def test_month_start_is_inclusive(self, db_session, user_factory):
        user = await user_factory()
        await self._add(db_session, user, 7, datetime(2026, 3, 1, 0, 0, 0, tzinfo=timezone.utc))
        await db_session.commit()
        entries, _ = await rank(db_session, windowed=True, now=NOW)
        assert [e.points for e in entries] == [7]


class TestPercentile:
    def test_values(self):
        assert percentile(1, 4) == 100.0
        assert percentile(4, 4) == 25.0
        assert percentile(1, 0) == 0.0
