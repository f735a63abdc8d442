"""Reward ledger tests: atomic award, validation before write, ledger-sum invariant."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.db.models import Contribution
from arcticcare.gamification.exceptions import InvalidInputError, NotFoundError
from arcticcare.gamification.ledger_service import (
    ContributionType,
    award,
    ledger_total,
    list_contributions,
    recompute_points,
    summarize_by_type,
)


async def _row_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(select(func.count(Contribution.id)).where(Contribution.user_id == user_id))
    return result.scalar_one()


class TestAward:
    @pytest.mark.asyncio
    async def test_award_appends_row_and_updates_balance(self, db_session, test_user):
        total = await award(db_session, None, test_user.id, "comment", 5, "Comentou em: Rio poluído")
        await db_session.commit()

        assert total == 5
        await db_session.refresh(test_user)
        assert test_user.points == 5
        assert test_user.level == 1

        rows = await list_contributions(db_session, test_user.id)
        assert len(rows) == 1
        assert rows[0].type == "comment"
        assert rows[0].points == 5
        assert rows[0].description == "Comentou em: Rio poluído"

    @pytest.mark.asyncio
    async def test_award_recomputes_level(self, db_session, test_user):
        await award(db_session, None, test_user.id, ContributionType.ISSUE_REPORTED, 50, "a")
        await award(db_session, None, test_user.id, ContributionType.ISSUE_REPORTED, 50, "b")
        await db_session.commit()
        await db_session.refresh(test_user)
        assert test_user.points == 100
        assert test_user.level == 2

    @pytest.mark.asyncio
    async def test_zero_points_is_allowed(self, db_session, test_user):
        assert await award(db_session, None, test_user.id, "data_submitted", 0, "vazio") == 0
        assert await _row_count(db_session, test_user.id) == 1

    @pytest.mark.asyncio
    async def test_unknown_type_rejected_without_write(self, db_session, test_user):
        with pytest.raises(InvalidInputError):
            await award(db_session, None, test_user.id, "mining", 5, "x")
        assert await _row_count(db_session, test_user.id) == 0

    @pytest.mark.asyncio
    async def test_negative_points_rejected_without_write(self, db_session, test_user):
        with pytest.raises(InvalidInputError):
            await award(db_session, None, test_user.id, "comment", -5, "x")
        assert await _row_count(db_session, test_user.id) == 0

    @pytest.mark.asyncio
    async def test_non_integer_points_rejected(self, db_session, test_user):
        with pytest.raises(InvalidInputError):
            await award(db_session, None, test_user.id, "comment", "5", "x")  # type: ignore[arg-type]
        with pytest.raises(InvalidInputError):
            await award(db_session, None, test_user.id, "comment", True, "x")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await award(db_session, None, 999_999, "comment", 5, "x")
        assert (await db_session.execute(select(func.count(Contribution.id)))).scalar_one() == 0

    @pytest.mark.asyncio
    async def test_invalid_input_is_a_value_error(self):
        assert issubclass(InvalidInputError, ValueError)


class TestLedgerInvariant:
    @pytest.mark.asyncio
    async def test_sum_of_rows_equals_balance(self, db_session, test_user):
        for kind, points in [
            ("account_created", 10),
            ("issue_reported", 50),
            ("comment", 5),
            ("issue_confirmed", 5),
            ("streak_bonus", 7),
            ("badge_unlocked", 100),
        ]:
            await award(db_session, None, test_user.id, kind, points, kind)
        await db_session.commit()
        await db_session.refresh(test_user)

        assert await ledger_total(db_session, test_user.id) == test_user.points == 177

    @pytest.mark.asyncio
    async def test_recompute_repairs_drifted_cache(self, db_session, test_user):
        await award(db_session, None, test_user.id, "comment", 5, "x")
        test_user.points = 999
        await db_session.commit()

        assert await recompute_points(db_session, test_user.id) == 5
        await db_session.commit()
        await db_session.refresh(test_user)
        assert test_user.points == 5
        assert test_user.level == 1


class TestLedgerReads:
    @pytest.mark.asyncio
    async def test_filter_by_type_and_newest_first(self, db_session, test_user):
        await award(db_session, None, test_user.id, "comment", 5, "primeiro")
        await award(db_session, None, test_user.id, "issue_reported", 20, "reporte")
        await award(db_session, None, test_user.id, "comment", 5, "segundo")
        await db_session.commit()

        comments = await list_contributions(db_session, test_user.id, type="comment")
        assert [c.description for c in comments] == ["segundo", "primeiro"]

        with pytest.raises(InvalidInputError):
            await list_contributions(db_session, test_user.id, type="bogus")

    @pytest.mark.asyncio
    async def test_summary_by_type(self, db_session, test_user):
        await award(db_session, None, test_user.id, "comment", 5, "a")
        await award(db_session, None, test_user.id, "comment", 5, "b")
        await award(db_session, None, test_user.id, "issue_reported", 30, "c")
        await db_session.commit()

        summary = await summarize_by_type(db_session, test_user.id)
        assert summary == [
            {"type": "comment", "count": 2, "points": 10},
            {"type": "issue_reported", "count": 1, "points": 30},
        ]
