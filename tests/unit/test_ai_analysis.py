"""Rule-based risk scoring and trend comparison."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from arcticcare.ai.analysis import (
    analyze_report,
    build_analysis,
    classify,
    compare_halves,
    predict_trend,
    score_text,
)
from arcticcare.db.models import Issue
from arcticcare.gamification.exceptions import InvalidInputError


class TestScoring:
    def test_fire_report(self):
        score, factors = score_text("fire", "Incêndio urgente", "fogo grande se propagando")
        assert score == 75
        assert len(factors) == 3

        analysis = build_analysis(score, factors)
        assert analysis.suggested_severity == "critical"
        assert analysis.risk_level == "CRÍTICO"
        assert analysis.confidence == 80
        assert analysis.recommendations[0] == "Acionar equipes de emergência imediatamente"

    def test_unknown_category_uses_default_weight(self):
        score, factors = score_text("noise", "Barulho", "vizinho")
        assert score == 10
        assert factors == []

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (70, ("critical", "CRÍTICO")),
            (69, ("high", "ALTO")),
            (50, ("high", "ALTO")),
            (30, ("medium", "MÉDIO")),
            (29, ("low", "BAIXO")),
        ],
    )
    def test_bands(self, score, expected):
        assert classify(score) == expected

    def test_score_is_clamped_but_band_is_not(self):
        analysis = build_analysis(140, ["x"] * 10)
        assert analysis.risk_score == 100
        assert analysis.suggested_severity == "critical"
        assert analysis.confidence == 95


class TestCompareHalves:
    def test_increasing(self):
        assert compare_halves(2, 3) == ("increasing", "50.0%")

    def test_decreasing(self):
        assert compare_halves(4, 1) == ("decreasing", "-75.0%")

    def test_empty_first_half(self):
        assert compare_halves(0, 5) == ("increasing", "0%")
        assert compare_halves(0, 0) == ("stable", "0%")


NOW = datetime(2026, 6, 30, 12, 0, tzinfo=timezone.utc)


def _issue(user_id, category, reported_at, region="Norte", status="open", lat=-3.1, lng=-60.0):
    return Issue(
        user_id=user_id,
        title="Ocorrência",
        description="Descrição",
        category=category,
        severity="medium",
        status=status,
        latitude=lat,
        longitude=lng,
        region=region,
        reported_at=reported_at,
        updated_at=reported_at,
    )


class TestWithDatabase:
    @pytest.mark.asyncio
    async def test_nearby_active_reports_raise_score(self, db_session, test_user):
        db_session.add_all([
            _issue(test_user.id, "flood", NOW, lat=-3.10, lng=-60.02),
            _issue(test_user.id, "flood", NOW, lat=-3.05, lng=-60.05),
            _issue(test_user.id, "flood", NOW, lat=-3.10, lng=-60.02, status="resolved"),
            _issue(test_user.id, "flood", NOW, lat=-5.0, lng=-60.0),
        ])
        await db_session.commit()

        analysis = await analyze_report(db_session, "Alagamento", "rua", "flood", latitude=-3.1, longitude=-60.0)
        assert analysis.risk_score == 45
        assert "2 ocorrência(s) ativa(s) na região" in analysis.risk_factors

    @pytest.mark.asyncio
    async def test_trend_by_halves(self, db_session, test_user):
        db_session.add_all([
            _issue(test_user.id, "fire", NOW - timedelta(days=25)),
            _issue(test_user.id, "fire", NOW - timedelta(days=5)),
            _issue(test_user.id, "fire", NOW - timedelta(days=3)),
            _issue(test_user.id, "fire", NOW - timedelta(days=1), region="Sul"),
            _issue(test_user.id, "waste", NOW - timedelta(days=2)),
            _issue(test_user.id, "fire", NOW - timedelta(days=40)),
        ])
        await db_session.commit()

        prediction = await predict_trend(db_session, category="fire", region="Norte", period="30d", now=NOW)
        assert prediction.total_issues == 3
        assert prediction.trend == "increasing"
        assert prediction.change_percent == "100.0%"
        assert prediction.confidence == 56
        assert prediction.predicted_next_period == "Aumento esperado"

    @pytest.mark.asyncio
    async def test_trend_without_data(self, db_session):
        prediction = await predict_trend(db_session, period="7d", now=NOW)
        assert prediction.trend == "stable"
        assert prediction.change_percent == "0%"
        assert prediction.category == "all"
        assert prediction.region == "all"
        assert prediction.confidence == 50

    @pytest.mark.asyncio
    async def test_invalid_period(self, db_session):
        with pytest.raises(InvalidInputError):
            await predict_trend(db_session, period="1y", now=NOW)
