from fastapi import APIRouter

from hydrowatch.api.health import router as health_router
from hydrowatch.api.insights import router as insights_router
from hydrowatch.api.monitoring import router as monitoring_router
from hydrowatch.api.predictions import router as predictions_router
from hydrowatch.api.status import router as status_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs par domaine (health, status, prédictions, vues tableau de bord, démo /api).
- Point d’entrée unique pour l’inclusion dans l’application FastAPI.
"""

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(status_router)
api_router.include_router(predictions_router)
api_router.include_router(insights_router)
api_router.include_router(monitoring_router)
