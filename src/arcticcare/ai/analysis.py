"""Rule-based risk scoring and trend estimation for environmental reports.

Scoring is deterministic: a category base weight, keyword hits in the title
and description, and the number of active reports nearby.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select

from arcticcare.db.models import Issue
from arcticcare.gamification.exceptions import InvalidInputError
from arcticcare.issues.service import count_active_near
from arcticcare.time_utils import as_utc, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

CATEGORY_RISK = {
    "fire": 40,
    "flood": 35,
    "pollution": 30,
    "deforestation": 25,
    "waste": 15,
    "other": 10,
}
DEFAULT_CATEGORY_RISK = 10

CRITICAL_KEYWORDS = ("urgente", "emergência", "crítico", "perigo", "morte", "evacuação", "explosão")
HIGH_KEYWORDS = ("grande", "extenso", "rápido", "propagando", "contaminação", "tóxico")
MEDIUM_KEYWORDS = ("moderado", "crescendo", "preocupante", "atenção")

NEARBY_WEIGHT = 5
NEARBY_DELTA_DEGREES = 0.1

# (minimum score, severity, label), highest first
SEVERITY_BANDS = (
    (70, "critical", "CRÍTICO"),
    (50, "high", "ALTO"),
    (30, "medium", "MÉDIO"),
)

RECOMMENDATIONS = {
    "critical": [
        "Acionar equipes de emergência imediatamente",
        "Notificar autoridades locais",
        "Considerar evacuação da área se necessário",
    ],
    "high": [
        "Monitorar situação de perto",
        "Preparar recursos para intervenção",
        "Alertar comunidades próximas",
    ],
    "medium": [
        "Acompanhar evolução do problema",
        "Registrar evidências adicionais",
    ],
    "low": ["Manter registro para acompanhamento"],
}

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}


@dataclass
class RiskAnalysis:
    risk_score: int
    suggested_severity: str
    risk_level: str
    risk_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    confidence: int = 65
    analyzed_at: datetime = field(default_factory=utcnow)


@dataclass
class TrendPrediction:
    trend: str
    change_percent: str
    total_issues: int
    period: str
    category: str
    region: str
    confidence: int
    predicted_next_period: str


def classify(score: int) -> tuple[str, str]:
    """(suggested severity, display label) for a raw score."""
    for minimum, severity, label in SEVERITY_BANDS:
        if score >= minimum:
            return severity, label
    return "low", "BAIXO"


def score_text(category: str, title: str, description: str) -> tuple[int, list[str]]:
    """Category weight plus keyword hits. Returns (score, factors)."""
    score = CATEGORY_RISK.get(category, DEFAULT_CATEGORY_RISK)
    factors: list[str] = []
    text = f"{title} {description}".lower()

    for keywords, weight, template in (
        (CRITICAL_KEYWORDS, 15, 'Palavra crítica detectada: "{}"'),
        (HIGH_KEYWORDS, 10, 'Indicador de alta severidade: "{}"'),
        (MEDIUM_KEYWORDS, 5, 'Indicador de atenção: "{}"'),
    ):
        for keyword in keywords:
            if keyword in text:
                score += weight
                factors.append(template.format(keyword))
    return score, factors


def build_analysis(score: int, factors: list[str]) -> RiskAnalysis:
    severity, label = classify(score)
    return RiskAnalysis(
        risk_score=min(score, 100),
        suggested_severity=severity,
        risk_level=label,
        risk_factors=factors,
        recommendations=list(RECOMMENDATIONS[severity]),
        confidence=min(65 + len(factors) * 5, 95),
    )


async def analyze_report(
    db: AsyncSession,
    title: str,
    description: str,
    category: str,
    latitude: float | None = None,
    longitude: float | None = None,
) -> RiskAnalysis:
    """Score a draft report. Severity bands use the unclamped score."""
    score, factors = score_text(category, title, description)

    if latitude is not None and longitude is not None:
        nearby = await count_active_near(db, latitude, longitude, NEARBY_DELTA_DEGREES)
        if nearby > 0:
            score += nearby * NEARBY_WEIGHT
            factors.append(f"{nearby} ocorrência(s) ativa(s) na região")

    return build_analysis(score, factors)


def compare_halves(first: int, second: int) -> tuple[str, str]:
    """(trend, change percent text) comparing two equal-length windows."""
    if second > first:
        trend = "increasing"
    elif second < first:
        trend = "decreasing"
    else:
        trend = "stable"
    change = f"{(second - first) / first * 100:.1f}%" if first > 0 else "0%"
    return trend, change


async def predict_trend(
    db: AsyncSession,
    category: str | None = None,
    region: str | None = None,
    period: str = "30d",
    now: datetime | None = None,
) -> TrendPrediction:
    """Compare report counts in the two halves of the period."""
    days = PERIOD_DAYS.get(period)
    if days is None:
        msg = "Período inválido (use 7d, 30d ou 90d)"
        raise InvalidInputError(msg)
    if now is None:
        now = utcnow()

    start = as_utc(now) - timedelta(days=days)
    midpoint = start + timedelta(days=days / 2)

    query = select(Issue.reported_at).where(Issue.reported_at >= start)
    if category:
        query = query.where(Issue.category == category)
    if region:
        query = query.where(Issue.region.contains(region))
    reported = [as_utc(ts) for ts in (await db.execute(query)).scalars()]

    first = sum(1 for ts in reported if ts < midpoint)
    second = len(reported) - first
    trend, change = compare_halves(first, second)

    return TrendPrediction(
        trend=trend,
        change_percent=change,
        total_issues=len(reported),
        period=period,
        category=category or "all",
        region=region or "all",
        confidence=min(50 + len(reported) * 2, 90),
        predicted_next_period={
            "increasing": "Aumento esperado",
            "decreasing": "Redução esperada",
            "stable": "Estabilidade esperada",
        }[trend],
    )
