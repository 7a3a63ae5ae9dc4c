from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from hydrowatch.api.deps import get_inference_service
from hydrowatch.ml.inference import InferenceService
from hydrowatch.ml.model_registry import ModelState

"""
API System Status.

Rôle (fonctionnel) :
- Expose l’état de chaque modèle (unloaded / loading / ready / failed), sa version,
  le nombre de chargements émis et l’éventuelle erreur du dernier échec.
- Expose le nombre de buffers numériques encore vivants (doit revenir à 0 au repos).
- Nombre de clients WebSocket connectés.
"""

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/status")
async def system_status(request: Request, svc: InferenceService = Depends(get_inference_service)):
    handles = svc.registry.handles()
    models = [
        {
            "name": h.name,
            "state": h.state.value,
            "model_version": h.model_version if h.ready else None,
            "loaded_at": h.loaded_at.isoformat() if h.loaded_at else None,
            "load_count": svc.registry.load_count(h.name),
            "error": h.error,
        }
        for h in handles
    ]

    manager = getattr(request.app.state, "ws_manager", None)

    return {
        "status": "ok" if all(h.state is ModelState.READY for h in handles) else "degraded",
        "models": models,
        "live_buffers": svc.allocator.live_count,
        "ws_clients": manager.count() if manager else 0,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
