from fastapi import APIRouter

from hydrowatch.core.settings import settings

"""
API Health.

Rôle (fonctionnel) :
- Endpoint simple pour vérifier que l’API répond (sans toucher aux modèles).
"""

router = APIRouter()


@router.get("/health")
def health():
    return {
        "status": "ok",
        "env": settings.ENV,
        "quality_threshold": settings.QUALITY_VALID_THRESHOLD,
    }
