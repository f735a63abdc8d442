"""Request/response schemas for AI endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from arcticcare.schemas import CamelModel


class AnalyzeReportRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class RiskAnalysisResponse(CamelModel):
    risk_score: int
    suggested_severity: str
    risk_level: str
    risk_factors: list[str]
    recommendations: list[str]
    confidence: int
    analyzed_at: datetime


class AnalyzeReportResponse(CamelModel):
    analysis: RiskAnalysisResponse
    points_earned: int


class PredictTrendRequest(CamelModel):
    category: str | None = None
    region: str | None = None
    period: str = "30d"


class TrendPredictionResponse(CamelModel):
    trend: str
    change_percent: str
    total_issues: int
    period: str
    category: str
    region: str
    confidence: int
    predicted_next_period: str


class PredictTrendResponse(CamelModel):
    prediction: TrendPredictionResponse
