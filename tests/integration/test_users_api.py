"""Integration tests for /api/users endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from httpx import AsyncClient

from arcticcare.gamification.ledger_service import award
from arcticcare.time_utils import utcnow


class TestProfile:
    @pytest.mark.asyncio
    async def test_public_profile(self, client: AsyncClient, test_user):
        response = await client.get(f"/api/users/{test_user.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["name"] == "Ana Cidadã"
        assert "email" not in data["user"]
        assert data["user"]["stats"] == {"issuesReported": 0, "comments": 0, "contributions": 0}
        assert data["recentIssues"] == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/users/4040")
        assert response.status_code == 404
        assert response.json() == {"detail": "Usuário não encontrado"}


class TestPoints:
    @pytest.mark.asyncio
    async def test_get_points(self, client: AsyncClient, db_session, test_user, user_factory):
        other = await user_factory()
        await award(db_session, None, other.id, "data_submitted", 90, "x")
        await award(db_session, None, test_user.id, "data_submitted", 150, "x")
        await db_session.commit()

        data = (await client.get(f"/api/users/{test_user.id}/points")).json()
        assert data["user"]["points"] == 150
        assert data["user"]["level"] == 2
        assert data["user"]["rank"] == 1
        assert data["user"]["totalUsers"] == 2
        assert data["user"]["percentile"] == 100.0
        assert data["stats"]["contributions"] == 1

    @pytest.mark.asyncio
    async def test_admin_award_goes_through_ledger(self, admin_client: AsyncClient, test_user):
        response = await admin_client.put(
            f"/api/users/{test_user.id}/points", json={"points": 120, "description": "Mutirão"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Pontos atualizados!"
        assert data["user"] == {"id": test_user.id, "points": 120, "level": 2}
        assert data["leveledUp"] is True

        summary = await admin_client.get(f"/api/users/{test_user.id}/gamification")
        assert summary.json()["stats"]["contributions"] == 1

    @pytest.mark.asyncio
    async def test_admin_award_reaching_point_badge(self, admin_client: AsyncClient, test_user):
        await admin_client.put(f"/api/users/{test_user.id}/points", json={"points": 500})

        data = (await admin_client.get(f"/api/users/{test_user.id}/gamification")).json()
        assert [b["name"] for b in data["badges"]] == ["Defensor do Planeta"]
        assert data["gamification"]["points"] == 600

    @pytest.mark.asyncio
    async def test_set_action_is_rejected(self, admin_client: AsyncClient, test_user):
        response = await admin_client.put(
            f"/api/users/{test_user.id}/points", json={"points": 10, "action": "set"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_points(self, admin_client: AsyncClient, test_user):
        response = await admin_client.put(f"/api/users/{test_user.id}/points", json={})
        assert response.status_code == 400
        assert response.json() == {"detail": "Pontos são obrigatórios"}

    @pytest.mark.asyncio
    async def test_negative_points(self, admin_client: AsyncClient, test_user):
        response = await admin_client.put(f"/api/users/{test_user.id}/points", json={"points": -5})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_admin(self, authed_client: AsyncClient, test_user):
        response = await authed_client.put(f"/api/users/{test_user.id}/points", json={"points": 10})
        assert response.status_code == 403


class TestGamification:
    @pytest.mark.asyncio
    async def test_level_progress(self, client: AsyncClient, db_session, test_user):
        await award(db_session, None, test_user.id, "data_submitted", 150, "x")
        await db_session.commit()

        data = (await client.get(f"/api/users/{test_user.id}/gamification")).json()
        assert data["gamification"] == {
            "points": 150,
            "level": 2,
            "rank": 1,
            "levelProgress": 25.0,
            "pointsToNextLevel": 150,
        }
        assert data["streak"]["active"] is True
        assert data["badges"] == []


class TestUserBadges:
    @pytest.mark.asyncio
    async def test_unlock_once(self, admin_client: AsyncClient, client: AsyncClient, test_user):
        catalogue = (await client.get("/api/badges")).json()
        badge = catalogue["badges"]["reports"][0]

        first = await admin_client.post(f"/api/users/{test_user.id}/badges", json={"badgeId": badge["id"]})
        assert first.status_code == 201
        assert first.json()["message"] == "Badge desbloqueado!"
        assert first.json()["badge"]["pointsEarned"] == badge["points"]

        second = await admin_client.post(f"/api/users/{test_user.id}/badges", json={"badgeId": badge["id"]})
        assert second.status_code == 409

        data = (await client.get(f"/api/users/{test_user.id}/badges")).json()
        assert data["unlocked"] == 1
        assert data["total"] == catalogue["total"]
        unlocked = [b for b in data["badges"] if b["unlocked"]]
        assert [b["id"] for b in unlocked] == [badge["id"]]
        assert unlocked[0]["unlockedAt"] is not None

        points = (await client.get(f"/api/users/{test_user.id}/points")).json()
        assert points["user"]["points"] == badge["points"]

    @pytest.mark.asyncio
    async def test_missing_badge_id(self, admin_client: AsyncClient, test_user):
        response = await admin_client.post(f"/api/users/{test_user.id}/badges", json={})
        assert response.status_code == 400
        assert response.json() == {"detail": "ID do badge é obrigatório"}

    @pytest.mark.asyncio
    async def test_unknown_badge(self, admin_client: AsyncClient, test_user):
        response = await admin_client.post(f"/api/users/{test_user.id}/badges", json={"badgeId": 999})
        assert response.status_code == 404


class TestStreak:
    @pytest.mark.asyncio
    async def test_seventh_day_pays_bonus(self, client_for, db_session, user_factory):
        user = await user_factory(created_at=utcnow() - timedelta(days=1))
        user.current_streak = 6
        user.longest_streak = 6
        await db_session.commit()

        response = await client_for(user).put(f"/api/users/{user.id}/streak")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Streak atualizado!"
        assert data["streak"]["currentStreak"] == 7
        assert data["streak"]["longestStreak"] == 7
        assert data["streakBroken"] is False
        assert data["bonusPoints"] == 7

        again = (await client_for(user).put(f"/api/users/{user.id}/streak")).json()
        assert again["streak"]["currentStreak"] == 7
        assert again["bonusPoints"] == 0

    @pytest.mark.asyncio
    async def test_gap_resets(self, client_for, db_session, user_factory):
        user = await user_factory(created_at=utcnow() - timedelta(days=4))
        user.current_streak = 9
        user.longest_streak = 9
        await db_session.commit()

        data = (await client_for(user).put(f"/api/users/{user.id}/streak")).json()
        assert data["message"] == "Streak reiniciado"
        assert data["streak"]["currentStreak"] == 1
        assert data["streak"]["longestStreak"] == 9
        assert data["streakBroken"] is True

    @pytest.mark.asyncio
    async def test_lapsed_streak_displays_zero(self, client: AsyncClient, db_session, user_factory):
        user = await user_factory(created_at=utcnow() - timedelta(hours=49))
        user.current_streak = 8
        user.longest_streak = 8
        await db_session.commit()

        data = (await client.get(f"/api/users/{user.id}/streak")).json()
        assert data["currentStreak"] == 0
        assert data["streakActive"] is False
        assert data["nextMilestone"] == {"days": 7, "reward": "🔥 Semana de Fogo"}

    @pytest.mark.asyncio
    async def test_cannot_touch_someone_else(self, authed_client: AsyncClient, user_factory):
        other = await user_factory()
        response = await authed_client.put(f"/api/users/{other.id}/streak")
        assert response.status_code == 403


class TestImpact:
    @pytest.mark.asyncio
    async def test_impact_from_reports(self, authed_client: AsyncClient, test_user):
        body = {
            "title": "Esgoto no rio",
            "description": "Descarte irregular",
            "category": "pollution",
            "severity": "medium",
            "latitude": -23.5,
            "longitude": -46.6,
        }
        for _ in range(2):
            await authed_client.post("/api/issues", json=body)

        data = (await authed_client.get(f"/api/users/{test_user.id}/impact")).json()
        assert data["impact"]["co2Saved"] == {"value": 5.0, "unit": "kg", "description": "CO₂ economizado"}
        assert data["impact"]["waterSaved"]["value"] == 100
        assert data["impact"]["areasProtected"]["value"] == 0
        assert data["activity"] == {"issuesReported": 2, "confirmations": 0}
