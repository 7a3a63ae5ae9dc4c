from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Tuple

from fastapi import Request

from hydrowatch.core.errors import AppHTTPException
from hydrowatch.core.settings import settings

"""
Core Rate Limit.

Rôle (fonctionnel) :
- Protège les endpoints de prédiction et les routes /api contre les rafales (anti-abus).
- Implémentation “in-memory” par IP + route (method + path), fenêtre fixe de 60 secondes (RPM).

Activation via settings :
- RATE_LIMIT_ENABLED : active/désactive le rate limiting.
- RATE_LIMIT_RPM : limite de requêtes par minute (par IP + route).

Notes :
- Le serveur tourne sur une seule boucle asyncio : check() est synchrone et ne
  cède jamais la main, il n’a donc pas besoin de verrou.
"""

# Préfixes concernés par la limite
LIMITED_PREFIXES: Tuple[str, ...] = ("/predict", "/insights", "/api")

WINDOW_S = 60.0


@dataclass
class _Bucket:
    """État minimal d’un compteur sur une fenêtre fixe."""
    window_start: float
    count: int


class InMemoryRateLimiter:
    """
    Rate limiter en mémoire (best-effort).

    - Un compteur par (IP, "METHOD /path"), réinitialisé à chaque fenêtre de 60s.
    - Lève AppHTTPException(429) si la limite est dépassée.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._buckets: Dict[Tuple[str, str], _Bucket] = {}

    def applies_to(self, path: str) -> bool:
        return path.startswith(LIMITED_PREFIXES)

    def check(self, request: Request) -> None:
        """Vérifie la limite pour (IP + route). Lève 429 si dépassement."""
        if not settings.RATE_LIMIT_ENABLED:
            return

        limit = int(settings.RATE_LIMIT_RPM or 0)
        if limit <= 0:
            return

        ip = request.client.host if request.client else "unknown"
        key = (ip, f"{request.method} {request.url.path}")
        now = self._clock()

        bucket = self._buckets.get(key)
        if bucket is None or (now - bucket.window_start) >= WINDOW_S:
            self._buckets[key] = _Bucket(window_start=now, count=1)
            return

        bucket.count += 1
        if bucket.count > limit:
            raise AppHTTPException(
                429,
                "RATE_LIMITED",
                f"Too many requests (limit: {limit}/min).",
                details={"limit_rpm": limit},
            )

    def reset(self) -> None:
        self._buckets.clear()


# Instance globale importable (utilisée par le middleware)
rate_limiter = InMemoryRateLimiter()
