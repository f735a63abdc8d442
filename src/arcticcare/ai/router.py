"""AI-assisted risk analysis endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arcticcare.ai import analysis
from arcticcare.ai.schemas import (
    AnalyzeReportRequest,
    AnalyzeReportResponse,
    PredictTrendRequest,
    PredictTrendResponse,
    RiskAnalysisResponse,
    TrendPredictionResponse,
)
from arcticcare.auth.dependencies import get_current_user
from arcticcare.config import get_settings
from arcticcare.database import get_session
from arcticcare.db.models import User
from arcticcare.gamification.ledger_service import ContributionType, award
from arcticcare.gamification.trigger_engine import TriggerEngine
from arcticcare.redis_client import get_optional_redis

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post("/analyze-report", response_model=AnalyzeReportResponse)
async def analyze_report(
    body: AnalyzeReportRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
):
    """Score a draft report and reward the caller for using the analysis."""
    result = await analysis.analyze_report(
        db,
        title=body.title,
        description=body.description,
        category=body.category,
        latitude=body.latitude,
        longitude=body.longitude,
    )

    points = get_settings().ai_analysis_points
    await award(db, redis, user.id, ContributionType.AI_ANALYSIS, points, "Usou análise de IA para avaliação de risco")
    await TriggerEngine(db, redis).evaluate(user.id)
    await db.commit()

    return AnalyzeReportResponse(analysis=RiskAnalysisResponse(**asdict(result)), points_earned=points)


@router.post("/predict-trend", response_model=PredictTrendResponse)
async def predict_trend(
    body: PredictTrendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    prediction = await analysis.predict_trend(db, category=body.category, region=body.region, period=body.period)
    return PredictTrendResponse(prediction=TrendPredictionResponse(**asdict(prediction)))
