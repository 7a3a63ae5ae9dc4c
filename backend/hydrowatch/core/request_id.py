from __future__ import annotations

import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Gère un identifiant de corrélation (request_id) stocké dans un ContextVar.
- Permet de relier dans les logs une requête HTTP, la prédiction exécutée et le
  chargement de modèle éventuellement déclenché à cette occasion.
- Le request_id peut être :
  - fourni par un header entrant (X-Request-Id),
  - généré automatiquement si absent (API, scripts CLI).

Notes :
- ContextVar suit les tâches asyncio : un chargement de modèle partagé garde le
  request_id de la requête qui l’a démarré.
"""

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    """Force la valeur du request_id pour le contexte courant."""
    _request_id.set(rid)


def get_request_id() -> str | None:
    """Retourne le request_id du contexte courant (ou None)."""
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """
    Garantit un request_id pour le contexte courant.

    - Si un request_id entrant est fourni, il est nettoyé et réutilisé.
    - Sinon, on génère un UUID.
    """
    rid = (incoming or "").strip() or uuid.uuid4().hex
    set_request_id(rid)
    return rid
