from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Set

from fastapi import WebSocket

"""
Core Realtime (WebSocket Manager).

Rôle (fonctionnel) :
- Garde la liste des tableaux de bord connectés sur /ws/alerts.
- Diffuse les alertes d’urgence (ALERT_TRIGGERED) à tous les clients connectés.

Notes :
- “Best-effort” : un client injoignable est retiré du pool, l’appelant n’échoue jamais.
- Verrou asyncio : protège l’accès concurrent au set de connexions.
"""

logger = logging.getLogger("hydrowatch.realtime")


class ConnectionManager:
    """Pool des connexions WebSocket actives."""

    def __init__(self) -> None:
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    def count(self) -> int:
        return len(self._connections)

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        async with self._lock:
            self._connections.add(ws)
        logger.info("ws connected (%s total)", self.count())

    async def disconnect(self, ws: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(ws)
        logger.info("ws disconnected (%s total)", self.count())

    async def broadcast_json(self, payload: Dict[str, Any]) -> int:
        """
        Diffuse un payload à toutes les connexions, purge celles qui sont mortes.

        Retourne le nombre de clients effectivement atteints.
        """
        async with self._lock:
            conns = list(self._connections)

        delivered = 0
        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
                delivered += 1
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._connections.discard(ws)
            logger.info("ws purged %s dead conns (%s remaining)", len(dead), self.count())

        return delivered

    async def close_all(self) -> None:
        """Ferme toutes les connexions (arrêt de l’application)."""
        async with self._lock:
            conns = list(self._connections)
            self._connections.clear()

        for ws in conns:
            try:
                await ws.close()
            except Exception:
                logger.debug("ws close failed", exc_info=True)
