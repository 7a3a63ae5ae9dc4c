from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from hydrowatch.ml.inference import InferenceService
from hydrowatch.schemas.predictions import (
    DataQualityIn,
    DataQualityOut,
    HealthRiskIn,
    HealthRiskOut,
    InferIn,
    InferOut,
    SourceDetectionIn,
    SourceDetectionOut,
)
from hydrowatch.api.deps import get_inference_service

"""
API Predictions.

Rôle (fonctionnel) :
- Expose les trois pipelines d’inférence (résultats bruts, sans mise en forme tableau de bord).
- /predict/infer : contrat générique {pipeline, features}.

Notes :
- Les erreurs d’inférence (ModelLoadError, ShapeMismatchError…) ne sont pas rattrapées ici :
  le handler global les traduit en payload d’erreur standard.
"""

router = APIRouter(prefix="/predict", tags=["predictions"])


def _plain(result) -> dict:
    """Dataclass résultat -> dict JSON (Severity -> sa valeur)."""
    out = asdict(result)
    if "severity" in out:
        out["severity"] = out["severity"].value
    return out


@router.post("/source-detection", response_model=SourceDetectionOut)
async def predict_source(payload: SourceDetectionIn, svc: InferenceService = Depends(get_inference_service)):
    res = await svc.predict_contamination_source(payload.pollution, payload.geo)
    return SourceDetectionOut(**_plain(res))


@router.post("/health-risk", response_model=HealthRiskOut)
async def predict_health_risk(payload: HealthRiskIn, svc: InferenceService = Depends(get_inference_service)):
    res = await svc.assess_health_risk(payload.hmpi, payload.population, payload.timeframe)
    return HealthRiskOut(**_plain(res))


@router.post("/data-quality", response_model=DataQualityOut)
async def predict_data_quality(payload: DataQualityIn, svc: InferenceService = Depends(get_inference_service)):
    res = await svc.validate_data_quality(payload.readings)
    return DataQualityOut(**_plain(res))


@router.post("/infer", response_model=InferOut)
async def infer(payload: InferIn, svc: InferenceService = Depends(get_inference_service)):
    res = await svc.infer(payload.pipeline, payload.features)
    return InferOut(pipeline=payload.pipeline, result=_plain(res))
