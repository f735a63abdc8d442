"""Platform statistics tests: dashboard counts, daily buckets, regions, community impact."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from arcticcare.alerts.service import create_alert
from arcticcare.datasets.service import submit_reading
from arcticcare.db.models import Issue
from arcticcare.gamification.exceptions import InvalidInputError
from arcticcare.issues.service import create_issue, resolve_issue, toggle_vote
from arcticcare.stats import service
from arcticcare.time_utils import utcnow

DAY1 = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


async def _issue(db, user_id, category="fire", severity="medium", region="Norte"):
    issue, _ = await create_issue(
        db,
        None,
        user_id,
        title=f"{category} {severity}",
        description="Relato",
        category=category,
        severity=severity,
        latitude=-3.1,
        longitude=-60.0,
        region=region,
    )
    return issue


class TestBucketByDay:
    def test_groups_by_utc_day_oldest_first(self):
        issues = [
            Issue(category="flood", severity="high", reported_at=DAY1 + timedelta(days=1)),
            Issue(category="fire", severity="low", reported_at=DAY1),
            Issue(category="fire", severity="high", reported_at=DAY1 + timedelta(hours=14)),
        ]
        days = service.bucket_by_day(issues)

        assert [d.date for d in days] == ["2026-05-01", "2026-05-02"]
        assert days[0].total == 2
        assert days[0].by_category == {"fire": 2}
        assert days[0].by_severity == {"low": 1, "high": 1}
        assert days[1].by_category == {"flood": 1}

    def test_empty(self):
        assert service.bucket_by_day([]) == []


class TestTimeline:
    @pytest.mark.asyncio
    async def test_window_and_category(self, db_session, test_user):
        old = await _issue(db_session, test_user.id)
        old.reported_at = utcnow() - timedelta(days=40)
        await _issue(db_session, test_user.id)
        await _issue(db_session, test_user.id, category="flood")
        await db_session.commit()

        _, _, total, days = await service.timeline(db_session, period="30d")
        assert total == 2
        assert sum(d.total for d in days) == 2

        _, _, total, _ = await service.timeline(db_session, period="90d", category="fire")
        assert total == 2

    @pytest.mark.asyncio
    async def test_invalid_period(self, db_session):
        with pytest.raises(InvalidInputError):
            await service.timeline(db_session, period="2d")


class TestDashboard:
    @pytest.mark.asyncio
    async def test_overview_counts(self, db_session, test_user):
        await _issue(db_session, test_user.id, severity="critical")
        done = await _issue(db_session, test_user.id, severity="critical", category="flood")
        await _issue(db_session, test_user.id, severity="low")
        await resolve_issue(db_session, None, done.id)
        await create_alert(db_session, "warning", "Calor", "Hidrate-se")
        await submit_reading(db_session, None, test_user.id, "temperature", 31.0, "°C", -3.1, -60.0)
        await db_session.commit()

        data = await service.dashboard(db_session)
        assert data.overview.total_issues == 3
        assert data.overview.open_issues == 2
        assert data.overview.resolved_issues == 1
        assert data.overview.critical_issues == 1
        assert data.overview.total_users == 1
        assert data.overview.active_alerts == 1
        assert data.overview.total_readings == 1
        assert data.issues_by_category == {"fire": 2, "flood": 1}
        assert data.issues_by_severity == {"critical": 2, "low": 1}
        assert data.recent_issues == 3


class TestRegions:
    @pytest.mark.asyncio
    async def test_busiest_region_first(self, db_session, test_user):
        await _issue(db_session, test_user.id, region="Sul", severity="high")
        await _issue(db_session, test_user.id, region="Norte", severity="high")
        await _issue(db_session, test_user.id, region="Norte", severity="low")
        await _issue(db_session, test_user.id, region=None)
        await db_session.commit()

        regions = await service.regions(db_session)
        assert [(r.region, r.total_issues) for r in regions] == [("Norte", 2), ("Sul", 1)]
        assert regions[0].severity == {"high": 1, "low": 1}
        assert regions[0].status == {"open": 2}


class TestCommunityImpact:
    def test_estimates(self):
        impact = service.estimate_community_impact(issues=4, resolved=2)
        assert impact["co2Saved"]["value"] == 10.0
        assert impact["treesEquivalent"]["value"] == 1.0
        assert impact["treesEquivalent"]["equivalent"] == "21kg de CO₂ absorvido/ano"
        assert impact["waterSaved"]["value"] == 200
        assert impact["wasteReported"]["equivalent"] == "4 sacos de lixo"
        assert impact["areasProtected"]["value"] == 2

    def test_category_impact(self):
        assert service.category_impact("fire", 3) == "15 hectares monitorados"
        assert service.category_impact("other", 3) == "3 ocorrências registradas"

    @pytest.mark.asyncio
    async def test_confirmations_count_only_confirm_votes(self, db_session, test_user, user_factory):
        neighbor = await user_factory(name="Vizinha")
        issue = await _issue(db_session, test_user.id)
        await toggle_vote(db_session, None, issue.id, neighbor.id, "confirm")
        await toggle_vote(db_session, None, issue.id, neighbor.id, "upvote")
        await db_session.commit()

        totals, _, breakdown, top = await service.community_impact(db_session)
        assert totals.members == 2
        assert totals.issues_reported == 1
        assert totals.confirmations == 1
        assert breakdown == [{"category": "fire", "count": 1, "impact": "5 hectares monitorados"}]
        assert top[0].user.id == test_user.id
