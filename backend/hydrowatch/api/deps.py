from __future__ import annotations

from fastapi import Depends, Request

from hydrowatch.core.errors import AppHTTPException
from hydrowatch.core.security import require_api_key
from hydrowatch.ml.inference import InferenceService
from hydrowatch.services.assessment_service import AssessmentService

"""
Dépendances API.

Rôle (fonctionnel) :
- Récupère les services construits au démarrage (app.state) : pas de singleton module.
- Protection “démo” via clé API (header) pour les routes sensibles.
"""


def get_inference_service(request: Request) -> InferenceService:
    service = getattr(request.app.state, "inference", None)
    if service is None:
        raise AppHTTPException(503, "SERVICE_UNAVAILABLE", "Inference service is not initialized")
    return service


def get_assessment_service(inference: InferenceService = Depends(get_inference_service)) -> AssessmentService:
    return AssessmentService(inference)


# Dépendance prête à l’emploi pour protéger un endpoint
DemoAuthDep = Depends(require_api_key)
