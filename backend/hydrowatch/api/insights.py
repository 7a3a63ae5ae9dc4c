from __future__ import annotations

from fastapi import APIRouter, Depends

from hydrowatch.api.deps import get_assessment_service
from hydrowatch.schemas.predictions import (
    HealthOutlookIn,
    HealthOutlookItem,
    HealthOutlookOut,
    LocationAnalysisOut,
    LocationIn,
    ParameterQualityOut,
    QualityCheckIn,
    QualityReportOut,
    RankedSource,
    TrendPointOut,
)
from hydrowatch.services.assessment_service import AssessmentService

"""
API Insights.

Rôle (fonctionnel) :
- Vues prêtes à afficher pour les pages du tableau de bord :
  - /insights/health-outlook : prévisions santé 6 mois / 1 an / 5 ans + courbe de tendance
  - /insights/data-quality   : contrôle qualité par paramètre + suggestion
  - /insights/location       : origines de contamination classées pour un point de la carte
"""

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("/health-outlook", response_model=HealthOutlookOut)
async def health_outlook(payload: HealthOutlookIn, svc: AssessmentService = Depends(get_assessment_service)):
    outlooks, trend = await svc.analyze_health_outlook(payload.hmpi, payload.population)
    return HealthOutlookOut(
        predictions=[
            HealthOutlookItem(
                timeframe=o.timeframe,
                risk_increase=o.risk_increase,
                affected_population=o.affected_population,
                confidence=o.confidence,
                severity=o.severity.value,
                diseases=o.diseases,
            )
            for o in outlooks
        ],
        trend=[TrendPointOut(month=p.month, risk=p.risk, population=p.population) for p in trend],
    )


@router.post("/data-quality", response_model=QualityReportOut)
async def data_quality(payload: QualityCheckIn, svc: AssessmentService = Depends(get_assessment_service)):
    report = await svc.check_data_quality(payload.model_dump())
    return QualityReportOut(
        results=[
            ParameterQualityOut(
                parameter=r.parameter,
                value=r.value,
                is_valid=r.is_valid,
                confidence=r.confidence,
                suggestion=r.suggestion,
            )
            for r in report.rows
        ],
        overall_quality=report.overall_quality,
        anomalies=report.anomalies,
    )


@router.post("/location", response_model=LocationAnalysisOut)
async def location(payload: LocationIn, svc: AssessmentService = Depends(get_assessment_service)):
    analysis = await svc.analyze_location(payload.lat, payload.lng, payload.pollution)
    return LocationAnalysisOut(
        lat=analysis.lat,
        lng=analysis.lng,
        predictions=[RankedSource(type=label, confidence=conf) for label, conf in analysis.sources],
    )
