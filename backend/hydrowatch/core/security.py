from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Request

from hydrowatch.core.errors import AppHTTPException
from hydrowatch.core.settings import settings

"""
Core Security (API Key).

Rôle (fonctionnel) :
- Protège les routes qui déclenchent une action visible à l’extérieur
  (ex : POST /api/emergency-alerts) par une API key simple (mode démo).
- Supporte deux formats de headers :
  - Authorization: Bearer <token>
  - X-API-Key: <token>

Comportement :
- Si API_KEY est configurée : la clé est requise.
- Si API_KEY est vide et ENV != prod : bypass (dev / local / tests).
- Si API_KEY est vide et ENV = prod : erreur 500 (configuration serveur invalide).
"""


def _extract_token(request: Request) -> Optional[str]:
    """Extrait un token depuis Authorization Bearer ou X-API-Key (si présent)."""
    auth = request.headers.get("authorization")
    if auth:
        parts = auth.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()

    x_api_key = request.headers.get("x-api-key")
    if x_api_key:
        return x_api_key.strip()

    return None


async def require_api_key(request: Request) -> None:
    """Dépendance FastAPI : lève AppHTTPException si la clé est absente ou invalide."""
    expected = settings.API_KEY or ""

    if not expected:
        if settings.ENV.lower() == "prod":
            raise AppHTTPException(500, "SERVER_MISCONFIG", "API_KEY is not configured")
        return

    token = _extract_token(request)
    # compare_digest : comparaison à temps constant
    if not token or not secrets.compare_digest(token, expected):
        raise AppHTTPException(401, "UNAUTHORIZED", "Invalid or missing API key")
