from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from hydrowatch.ml.classifiers import Severity
from hydrowatch.ml.feature_vectorizer import QUALITY_PARAMETERS, quality_readings
from hydrowatch.ml.inference import InferenceService

"""
Assessment Service.

Rôle (fonctionnel) :
- Construit, au-dessus des prédictions brutes, les vues consommées par le tableau de bord :
  - perspectives santé sur 3 horizons (6 mois / 1 an / 5 ans) avec population touchée,
    pathologies associées et série de tendance pour le graphique ;
  - contrôle qualité par paramètre avec suggestion lisible ;
  - origines de contamination classées pour un point de la carte.

Principe :
- Le service n’accède qu’à InferenceService (injecté) : aucune I/O propre.
- Les erreurs d’inférence remontent telles quelles (la couche API les traduit).
"""

HEALTH_TIMEFRAMES: Tuple[str, ...] = ("6months", "1year", "5years")

# Mois correspondant à chaque horizon (axe X de la courbe de tendance)
TIMEFRAME_MONTHS: Dict[str, int] = {"6months": 6, "1year": 12, "5years": 60}

DISEASES: Tuple[str, ...] = (
    "Kidney Disease",
    "Cardiovascular Issues",
    "Neurological Disorders",
    "Liver Problems",
    "Cancer Risk",
)

# Profil de pollution par défaut utilisé quand la carte ne fournit que la position
DEFAULT_POLLUTION_PROFILE: Tuple[float, ...] = (0.8, 0.6, 0.3, 0.9, 0.4)


@dataclass(frozen=True)
class HealthOutlook:
    timeframe: str
    risk_increase: float
    affected_population: int
    confidence: float
    severity: Severity
    diseases: List[str]


@dataclass(frozen=True)
class TrendPoint:
    month: int
    risk: float
    population: int


@dataclass(frozen=True)
class ParameterQuality:
    parameter: str
    value: float
    is_valid: bool
    confidence: float
    suggestion: str


@dataclass(frozen=True)
class QualityReport:
    rows: List[ParameterQuality]
    overall_quality: float       # confiance * 100
    anomalies: List[str]


@dataclass(frozen=True)
class LocationAnalysis:
    lat: float
    lng: float
    sources: List[Tuple[str, float]]   # (origine, confiance en %), tri décroissant


def _round_half_up(value: float) -> int:
    # 0.5 -> 1 (round() de Python arrondit au pair)
    return int(math.floor(value + 0.5))


def diseases_for_risk(risk_increase: float) -> List[str]:
    """Les ceil(risk% / 100 * 5) premières pathologies de la liste (bornées à [0, 5])."""
    count = math.ceil((risk_increase / 100.0) * len(DISEASES))
    count = max(0, min(len(DISEASES), count))
    return list(DISEASES[:count])


def quality_suggestion(parameter: str, confidence: float) -> str:
    if confidence < 0.3:
        return f"{parameter} reading appears highly suspicious. Please re-test immediately."
    if confidence < 0.6:
        return f"{parameter} reading needs verification. Check calibration of equipment."
    if confidence < 0.8:
        return f"{parameter} reading is acceptable but monitor for trends."
    return f"{parameter} reading passes all quality checks."


class AssessmentService:
    """Vues “tableau de bord” construites à partir d’InferenceService."""

    def __init__(self, inference: InferenceService) -> None:
        self.inference = inference

    async def analyze_health_outlook(
        self, hmpi: float, population: int
    ) -> Tuple[List[HealthOutlook], List[TrendPoint]]:
        """
        Une prédiction par horizon, dans l’ordre (6 mois, 1 an, 5 ans).

        Retourne les perspectives et la série de tendance (point 0 + un point par horizon).
        """
        outlooks: List[HealthOutlook] = []
        for timeframe in HEALTH_TIMEFRAMES:
            res = await self.inference.assess_health_risk(hmpi, population, timeframe)
            outlooks.append(
                HealthOutlook(
                    timeframe=timeframe,
                    risk_increase=res.risk_increase,
                    affected_population=_round_half_up(population * (res.risk_increase / 100.0)),
                    confidence=res.confidence,
                    severity=res.severity,
                    diseases=diseases_for_risk(res.risk_increase),
                )
            )

        trend = [TrendPoint(month=0, risk=0.0, population=0)] + [
            TrendPoint(month=TIMEFRAME_MONTHS[o.timeframe], risk=o.risk_increase, population=o.affected_population)
            for o in outlooks
        ]
        return outlooks, trend

    async def check_data_quality(self, values: Mapping[str, object]) -> QualityReport:
        """Un seul appel modèle pour la saisie complète, puis une ligne par paramètre."""
        readings = quality_readings(values)
        res = await self.inference.validate_data_quality(readings)

        rows = [
            ParameterQuality(
                parameter=param.capitalize(),
                value=value,
                is_valid=res.is_valid,
                confidence=res.confidence,
                suggestion=quality_suggestion(param, res.confidence),
            )
            for param, value in zip(QUALITY_PARAMETERS, readings)
        ]
        return QualityReport(rows=rows, overall_quality=res.confidence * 100.0, anomalies=list(res.anomalies))

    async def analyze_location(
        self, lat: float, lng: float, pollution: Optional[Sequence[float]] = None
    ) -> LocationAnalysis:
        profile = list(pollution) if pollution else list(DEFAULT_POLLUTION_PROFILE)
        res = await self.inference.predict_contamination_source(profile, [lat, lng])
        return LocationAnalysis(
            lat=lat,
            lng=lng,
            sources=[(label, score * 100.0) for label, score in res.ranked()],
        )
