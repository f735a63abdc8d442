"""Integration tests for /api/alerts endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


def _alert_body(**overrides):
    body = {"type": "warning", "title": "Onda de calor", "message": "Evite exposição ao sol", "region": "Nordeste"}
    body.update(overrides)
    return body


class TestAlerts:
    @pytest.mark.asyncio
    async def test_create_list_and_deactivate(self, admin_client: AsyncClient, client: AsyncClient):
        created = await admin_client.post("/api/alerts", json=_alert_body())
        assert created.status_code == 201
        assert created.json()["message"] == "Alerta criado com sucesso!"
        alert_id = created.json()["alert"]["id"]
        await admin_client.post("/api/alerts", json=_alert_body(type="critical", title="Enchente", region="Sul"))

        listing = (await client.get("/api/alerts")).json()
        assert [a["title"] for a in listing["alerts"]] == ["Enchente", "Onda de calor"]

        critical = (await client.get("/api/alerts/type/critical")).json()
        assert [a["title"] for a in critical["alerts"]] == ["Enchente"]

        regional = (await client.get("/api/alerts/region/Nordeste")).json()
        assert [a["id"] for a in regional["alerts"]] == [alert_id]

        off = await admin_client.post(f"/api/alerts/{alert_id}/deactivate")
        assert off.json()["alert"]["isActive"] is False
        assert [a["title"] for a in (await client.get("/api/alerts")).json()["alerts"]] == ["Enchente"]
        everything = (await client.get("/api/alerts", params={"includeExpired": "true"})).json()
        assert len(everything["alerts"]) == 2

    @pytest.mark.asyncio
    async def test_invalid_type(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/alerts", json=_alert_body(type="panic"))
        assert response.status_code == 400
        assert response.json() == {"detail": "Tipo de alerta inválido"}

    @pytest.mark.asyncio
    async def test_writes_require_admin(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/alerts", json=_alert_body())
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_alert(self, client: AsyncClient):
        response = await client.get("/api/alerts/4040")
        assert response.status_code == 404
        assert response.json() == {"detail": "Alerta não encontrado"}


class TestGenerateFromIssues:
    @pytest.mark.asyncio
    async def test_generate_once_per_critical_issue(self, authed_client: AsyncClient, admin_client: AsyncClient):
        await authed_client.post(
            "/api/issues",
            json={
                "title": "Rompimento de barragem",
                "description": "Lama descendo o rio",
                "category": "flood",
                "severity": "critical",
                "latitude": -20.1,
                "longitude": -44.1,
                "region": "Minas Gerais",
            },
        )

        first = (await admin_client.post("/api/alerts/generate-from-issues")).json()
        assert first["message"] == "1 alertas gerados a partir de ocorrências críticas"
        (alert,) = first["alerts"]
        assert alert["title"] == "Alerta: Inundação - Minas Gerais"
        assert alert["expiresAt"] is not None

        again = (await admin_client.post("/api/alerts/generate-from-issues")).json()
        assert again["alerts"] == []
