"""Integration tests for /api/ai endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestAnalyzeReport:
    @pytest.mark.asyncio
    async def test_fire_report_is_critical(self, authed_client: AsyncClient, test_user):
        response = await authed_client.post(
            "/api/ai/analyze-report",
            json={"title": "Incêndio urgente", "description": "fogo grande se propagando", "category": "fire"},
        )
        assert response.status_code == 200
        data = response.json()
        analysis = data["analysis"]
        assert analysis["riskScore"] == 75
        assert analysis["suggestedSeverity"] == "critical"
        assert analysis["riskLevel"] == "CRÍTICO"
        assert analysis["confidence"] == 80
        assert len(analysis["riskFactors"]) == 3
        assert data["pointsEarned"] == 5

        ledger = (await authed_client.get("/api/contributions", params={"type": "ai_analysis"})).json()
        assert ledger["summary"] == {"total": 1, "totalPoints": 5}

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.post(
            "/api/ai/analyze-report", json={"title": "x", "description": "y", "category": "fire"}
        )
        assert response.status_code == 401


class TestPredictTrend:
    @pytest.mark.asyncio
    async def test_empty_history_is_stable(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/ai/predict-trend", json={"period": "7d"})
        assert response.status_code == 200
        prediction = response.json()["prediction"]
        assert prediction["trend"] == "stable"
        assert prediction["changePercent"] == "0%"
        assert prediction["totalIssues"] == 0
        assert prediction["category"] == "all"
        assert prediction["predictedNextPeriod"] == "Estabilidade esperada"

    @pytest.mark.asyncio
    async def test_recent_reports_trend_up(self, authed_client: AsyncClient):
        body = {
            "title": "Foco de incêndio",
            "description": "Mata seca",
            "category": "fire",
            "severity": "high",
            "latitude": -10.0,
            "longitude": -55.0,
        }
        await authed_client.post("/api/issues", json=body)

        prediction = (
            await authed_client.post("/api/ai/predict-trend", json={"category": "fire", "period": "30d"})
        ).json()["prediction"]
        assert prediction["trend"] == "increasing"
        assert prediction["totalIssues"] == 1
        assert prediction["confidence"] == 52

    @pytest.mark.asyncio
    async def test_invalid_period(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/ai/predict-trend", json={"period": "1y"})
        assert response.status_code == 400
