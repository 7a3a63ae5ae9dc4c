from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Standardise le format des erreurs renvoyées par l’API (payload homogène).
- Fournit une exception applicative (AppHTTPException) pour lever des erreurs métier de façon cohérente.
- Traduit les erreurs d’inférence (codes stables portés par les exceptions ML) en statut HTTP.

Convention de réponse (exemple) :
{
  "error": {
    "code": "SHAPE_MISMATCH",
    "message": "Model 'health-risk' expects 3 features, got 2",
    "status": 422,
    "request_id": "...",
    "timestamp": "...",
    "details": {"model": "health-risk", "expected": 3, "actual": 2}
  }
}
"""

# Code stable -> statut HTTP (les codes sont définis côté hydrowatch.ml.errors)
STATUS_BY_CODE: Dict[str, int] = {
    "MODEL_LOAD_FAILED": 503,
    "MODEL_NOT_LOADED": 503,
    "SHAPE_MISMATCH": 422,
    "INVALID_FEATURES": 422,
    "UNKNOWN_PIPELINE": 404,
    "INFERENCE_FAILED": 500,
}


def now_iso() -> str:
    """Timestamp ISO-8601 en UTC (utilisé dans toutes les erreurs)."""
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construit un payload d’erreur homogène pour l’API."""
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "status": status,
            "request_id": request_id,
            "timestamp": now_iso(),
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppHTTPException(HTTPException):
    """
    Exception applicative standardisée.

    Usage :
    - Lever une erreur “métier” avec un code stable et un message explicite.
    - Laisser la couche API/middlewares produire une réponse cohérente.

    Exemple :
        raise AppHTTPException(503, "MODEL_NOT_LOADED", "Model 'data-quality' is not loaded")
    """

    def __init__(self, status_code: int, code: str, message: str, details: Any = None):
        # On conserve le format attendu par la couche de gestion d’erreurs de l’app
        super().__init__(status_code=status_code, detail={"code": code, "message": message, "details": details})


def http_error_from(exc: Exception) -> AppHTTPException:
    """
    Convertit une erreur d’inférence en AppHTTPException.

    L’exception doit exposer `code` (str) et éventuellement `details()` ; un code
    inconnu retombe sur 500 INFERENCE_FAILED.
    """
    code = str(getattr(exc, "code", "INFERENCE_FAILED"))
    status = STATUS_BY_CODE.get(code, 500)
    details_fn = getattr(exc, "details", None)
    details = details_fn() if callable(details_fn) else None
    return AppHTTPException(status, code, str(exc), details=details)
