"""Integration tests for badge, ranking and contribution endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from arcticcare.gamification.ledger_service import award
from arcticcare.gamification.seed import BADGE_SEED_DATA


async def _give(db_session, user, points, type="data_submitted"):  # noqa: A002
    await award(db_session, None, user.id, type, points, "ajuste")
    await db_session.commit()


class TestBadgesEndpoints:
    @pytest.mark.asyncio
    async def test_catalogue_grouped_by_category(self, client: AsyncClient):
        response = await client.get("/api/badges")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == len(BADGE_SEED_DATA)
        assert set(data["categories"]) == {"reports", "community", "general"}
        first = data["badges"]["reports"][0]
        assert first["name"] == "Primeiro Reporte"
        assert first["requirement"] == {"issues": 1}
        assert "createdAt" in first

    @pytest.mark.asyncio
    async def test_badge_detail_with_recent_unlocks(self, client: AsyncClient, admin_client: AsyncClient, test_user):
        catalogue = (await client.get("/api/badges")).json()
        badge_id = catalogue["badges"]["community"][0]["id"]
        await admin_client.post(f"/api/users/{test_user.id}/badges", json={"badgeId": badge_id})

        response = await client.get(f"/api/badges/{badge_id}")
        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["totalUnlocked"] == 1
        assert stats["recentUnlocks"][0]["userId"] == test_user.id
        assert stats["recentUnlocks"][0]["name"] == "Ana Cidadã"

    @pytest.mark.asyncio
    async def test_badge_not_found(self, client: AsyncClient):
        response = await client.get("/api/badges/9999")
        assert response.status_code == 404
        assert response.json() == {"detail": "Badge não encontrada"}

    @pytest.mark.asyncio
    async def test_create_badge_requires_admin(self, authed_client: AsyncClient):
        body = {"name": "Nova", "description": "d", "icon": "⭐", "requirement": {"issues": 3}, "points": 5}
        response = await authed_client.post("/api/badges", json=body)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_badge(self, admin_client: AsyncClient):
        body = {
            "name": "Repórter Dedicado",
            "description": "Reportou 5 ocorrências",
            "icon": "📸",
            "requirement": '{"issues": 5}',
            "points": 25,
            "category": "reports",
        }
        response = await admin_client.post("/api/badges", json=body)
        assert response.status_code == 201
        assert response.json()["requirement"] == {"issues": 5}

        again = await admin_client.post("/api/badges", json=body)
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_create_badge_bad_requirement(self, admin_client: AsyncClient):
        body = {"name": "Nova", "description": "d", "icon": "⭐", "requirement": {"likes": 3}, "points": 5}
        response = await admin_client.post("/api/badges", json=body)
        assert response.status_code == 400


class TestRankingEndpoints:
    @pytest.mark.asyncio
    async def test_global_ranking(self, client: AsyncClient, db_session, user_factory):
        a = await user_factory(name="A")
        b = await user_factory(name="B")
        c = await user_factory(name="C")
        await _give(db_session, a, 450)
        await _give(db_session, b, 320)
        await _give(db_session, c, 280)

        response = await client.get("/api/ranking", params={"limit": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "global"
        assert [(e["name"], e["rank"], e["points"]) for e in data["ranking"]] == [("A", 1, 450), ("B", 2, 320)]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

        page2 = (await client.get("/api/ranking", params={"limit": 2, "page": 2})).json()
        assert [(e["name"], e["rank"]) for e in page2["ranking"]] == [("C", 3)]

    @pytest.mark.asyncio
    async def test_top_with_medals(self, client: AsyncClient, db_session, user_factory):
        for name, points in (("A", 30), ("B", 20), ("C", 10), ("D", 5)):
            await _give(db_session, await user_factory(name=name), points)

        top = (await client.get("/api/ranking/top", params={"limit": 4})).json()["top"]
        assert [e["medal"] for e in top] == ["🥇", "🥈", "🥉", None]

    @pytest.mark.asyncio
    async def test_invalid_type(self, client: AsyncClient):
        response = await client.get("/api/ranking", params={"type": "weekly"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_my_rank(self, authed_client: AsyncClient, db_session, user_factory, test_user):
        await _give(db_session, await user_factory(name="Líder"), 500)
        await _give(db_session, test_user, 100)
        await user_factory(name="Novata")

        data = (await authed_client.get("/api/ranking/me")).json()
        assert data["rank"] == 2
        assert data["totalUsers"] == 3
        assert data["points"] == 100
        assert data["level"] == 2

    @pytest.mark.asyncio
    async def test_my_monthly_rank_without_activity(self, authed_client: AsyncClient, db_session, user_factory):
        await _give(db_session, await user_factory(name="Ativa"), 40)

        data = (await authed_client.get("/api/ranking/me", params={"type": "monthly"})).json()
        assert data["rank"] is None
        assert data["percentile"] is None
        assert data["totalUsers"] == 1

    @pytest.mark.asyncio
    async def test_monthly_ranking_counts_this_month(self, client: AsyncClient, db_session, user_factory):
        ativa = await user_factory(name="Ativa")
        await user_factory(name="Parada")
        await _give(db_session, ativa, 40)

        data = (await client.get("/api/ranking", params={"type": "monthly"})).json()
        assert [(e["name"], e["points"]) for e in data["ranking"]] == [("Ativa", 40)]


class TestContributionsEndpoints:
    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/contributions")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_and_filter(self, authed_client: AsyncClient, db_session, test_user):
        await _give(db_session, test_user, 5, type="comment")
        await _give(db_session, test_user, 20, type="issue_reported")

        data = (await authed_client.get("/api/contributions")).json()
        assert [c["type"] for c in data["contributions"]] == ["issue_reported", "comment"]
        assert data["summary"] == {"total": 2, "totalPoints": 25}

        only = (await authed_client.get("/api/contributions", params={"type": "comment"})).json()
        assert [c["points"] for c in only["contributions"]] == [5]

    @pytest.mark.asyncio
    async def test_summary_matches_balance(self, authed_client: AsyncClient, db_session, test_user):
        await _give(db_session, test_user, 5, type="comment")
        await _give(db_session, test_user, 5, type="comment")
        await _give(db_session, test_user, 30, type="issue_reported")

        data = (await authed_client.get("/api/contributions/summary")).json()
        assert data["totalPoints"] == data["ledgerPoints"] == 40
        assert {row["type"]: (row["count"], row["points"]) for row in data["byType"]} == {
            "comment": (2, 10),
            "issue_reported": (1, 30),
        }
