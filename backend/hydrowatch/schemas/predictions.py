from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

"""
Schemas Predictions (Pydantic).

Rôle (fonctionnel) :
- Contrat HTTP des endpoints /predict/* (prédictions brutes) et /insights/* (vues tableau de bord).
- Valide les entrées (nombres finis, listes non vides, horizon connu ou libre).

Notes :
- extra="forbid" sur les requêtes : contrat strict.
- La largeur des vecteurs n’est pas validée ici : c’est le modèle chargé qui fait foi
  (ShapeMismatchError -> 422 SHAPE_MISMATCH).
"""


class _StrictIn(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


# --- Requêtes ---

class SourceDetectionIn(_StrictIn):
    pollution: List[float] = Field(min_length=1)
    geo: List[float] = Field(min_length=1)


class HealthRiskIn(_StrictIn):
    hmpi: float = Field(ge=0)
    population: float = Field(ge=0)
    # horizon libre : une valeur inconnue est encodée comme 1 an
    timeframe: str = "1year"


class DataQualityIn(_StrictIn):
    readings: List[float] = Field(min_length=1)


class InferIn(_StrictIn):
    pipeline: str
    features: List[float] = Field(min_length=1)


class HealthOutlookIn(_StrictIn):
    hmpi: float = Field(default=75.0, ge=0)
    population: int = Field(default=100000, ge=0)


class QualityCheckIn(_StrictIn):
    arsenic: Optional[float] = None
    lead: Optional[float] = None
    mercury: Optional[float] = None
    iron: Optional[float] = None
    uranium: Optional[float] = None


class LocationIn(_StrictIn):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    pollution: Optional[List[float]] = None


# --- Réponses ---

class SourceDetectionOut(BaseModel):
    industrial: float
    agricultural: float
    urban: float
    natural: float


class HealthRiskOut(BaseModel):
    risk_increase: float
    confidence: float
    severity: str


class DataQualityOut(BaseModel):
    is_valid: bool
    confidence: float
    anomalies: List[str]


class InferOut(BaseModel):
    pipeline: str
    result: dict


class HealthOutlookItem(BaseModel):
    timeframe: str
    risk_increase: float
    affected_population: int
    confidence: float
    severity: str
    diseases: List[str]


class TrendPointOut(BaseModel):
    month: int
    risk: float
    population: int


class HealthOutlookOut(BaseModel):
    predictions: List[HealthOutlookItem]
    trend: List[TrendPointOut]


class ParameterQualityOut(BaseModel):
    parameter: str
    value: float
    is_valid: bool
    confidence: float
    suggestion: str


class QualityReportOut(BaseModel):
    results: List[ParameterQualityOut]
    overall_quality: float
    anomalies: List[str]


class RankedSource(BaseModel):
    type: str
    confidence: float   # en %


class LocationAnalysisOut(BaseModel):
    lat: float
    lng: float
    predictions: List[RankedSource]
