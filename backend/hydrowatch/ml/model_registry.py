from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from hydrowatch.ml.artifacts import ArtifactSource
from hydrowatch.ml.errors import ModelLoadError

"""
ML Model Registry.

Rôle (fonctionnel) :
- Cache “1 instance par nom de modèle” pour toute la durée de vie du process.
- Chargement paresseux et dédupliqué (single-flight) : tant qu’un chargement est en cours,
  tous les appelants concurrents attendent la même tâche, aucun second fetch n’est émis.
- Expose l’état de chaque modèle (unloaded / loading / ready / failed) pour /system/status.

État interne (variante taguée, par nom) :
- _Unloaded            : jamais chargé (ou chargement annulé)
- _Loading(task)       : chargement en cours, tâche partagée
- _Ready(handle)       : chargé, définitif (pas d’unload)
- _Failed(error)       : dernier chargement en échec ; l’appel suivant relance un chargement

Notes :
- Pas de singleton module : l’instance est construite par la racine de composition
  (lifespan FastAPI, scripts) et injectée dans InferenceService.
- La transition unloaded -> loading se fait sans await intermédiaire : elle est atomique
  sur la boucle asyncio. Un hôte multi-thread devrait la protéger par un verrou.
"""

logger = logging.getLogger("hydrowatch.ml.registry")


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ModelHandle:
    """Instantané de l’état d’un modèle nommé."""
    name: str
    state: ModelState
    model: Any = None                      # présent uniquement si READY
    meta: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None            # message du dernier échec (FAILED)
    loaded_at: Optional[datetime] = None

    @property
    def ready(self) -> bool:
        return self.state is ModelState.READY and self.model is not None

    @property
    def input_width(self) -> Optional[int]:
        """Largeur d’entrée déclarée par l’artefact (meta.input_width), si connue."""
        width = self.meta.get("input_width")
        if width is None:
            width = getattr(self.model, "input_width", None)
        return int(width) if width is not None else None

    @property
    def model_version(self) -> str:
        return str(self.meta.get("model_version", "unknown"))


@dataclass(frozen=True)
class _Unloaded:
    pass


@dataclass(frozen=True)
class _Loading:
    task: "asyncio.Task[ModelHandle]"


@dataclass(frozen=True)
class _Ready:
    handle: ModelHandle


@dataclass(frozen=True)
class _Failed:
    error: ModelLoadError


_Entry = Union[_Unloaded, _Loading, _Ready, _Failed]


class ModelRegistry:
    """Registry des modèles : nom -> état, avec chargement single-flight."""

    def __init__(
        self,
        source: ArtifactSource,
        *,
        load_timeout: float = 0.0,
        names: Iterable[str] = (),
    ) -> None:
        self._source = source
        self._load_timeout = load_timeout
        self._entries: Dict[str, _Entry] = {name: _Unloaded() for name in names}
        self._load_counts: Dict[str, int] = {}

    # --- Inspection ---

    def handle(self, name: str) -> ModelHandle:
        """État courant du modèle `name` (crée l’entrée unloaded au premier accès)."""
        entry = self._entries.setdefault(name, _Unloaded())
        return self._snapshot(name, entry)

    def handles(self) -> List[ModelHandle]:
        return [self._snapshot(name, entry) for name, entry in self._entries.items()]

    def load_count(self, name: str) -> int:
        """Nombre de fetchs d’artefact réellement émis pour `name`."""
        return self._load_counts.get(name, 0)

    @staticmethod
    def _snapshot(name: str, entry: _Entry) -> ModelHandle:
        if isinstance(entry, _Ready):
            return entry.handle
        if isinstance(entry, _Loading):
            return ModelHandle(name=name, state=ModelState.LOADING)
        if isinstance(entry, _Failed):
            return ModelHandle(name=name, state=ModelState.FAILED, error=str(entry.error))
        return ModelHandle(name=name, state=ModelState.UNLOADED)

    # --- Chargement ---

    async def ensure_loaded(self, name: str) -> ModelHandle:
        """
        Retourne le handle READY de `name`, en le chargeant si besoin.

        - READY   : retour immédiat
        - LOADING : attend la tâche partagée
        - sinon   : démarre un chargement que les appels concurrents partageront
        Lève ModelLoadError si le chargement échoue (même erreur pour tous les appelants).
        """
        entry = self._entries.get(name, _Unloaded())

        if isinstance(entry, _Ready):
            return entry.handle

        if isinstance(entry, _Loading) and not entry.task.cancelled():
            task = entry.task
        else:
            task = asyncio.get_running_loop().create_task(self._load(name), name=f"load-model:{name}")
            task.add_done_callback(functools.partial(self._on_load_done, name))
            self._entries[name] = _Loading(task)

        # shield : un appelant annulé n’annule pas le chargement partagé
        return await asyncio.shield(task)

    async def _load(self, name: str) -> ModelHandle:
        self._load_counts[name] = self._load_counts.get(name, 0) + 1
        start = time.perf_counter()
        logger.info("model_load_started", extra={"model": name, "load_count": self._load_counts[name]})

        try:
            fetch = self._source.fetch(name)
            if self._load_timeout > 0:
                artifact = await asyncio.wait_for(fetch, timeout=self._load_timeout)
            else:
                artifact = await fetch
        except asyncio.CancelledError:
            self._entries[name] = _Unloaded()
            raise
        except Exception as exc:
            error = ModelLoadError(name, exc)
            self._entries[name] = _Failed(error)
            logger.warning(
                "model_load_failed",
                extra={"model": name, "error": repr(exc), "state": ModelState.FAILED.value},
            )
            raise error from exc

        handle = ModelHandle(
            name=name,
            state=ModelState.READY,
            model=artifact.model,
            meta=artifact.meta,
            loaded_at=datetime.now(timezone.utc),
        )
        self._entries[name] = _Ready(handle)
        logger.info(
            "model_loaded",
            extra={
                "model": name,
                "state": ModelState.READY.value,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return handle

    async def aclose(self) -> None:
        """Annule les chargements encore en cours (arrêt de l’application)."""
        tasks = [e.task for e in self._entries.values() if isinstance(e, _Loading)]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _on_load_done(self, name: str, task: "asyncio.Task[Any]") -> None:
        if task.cancelled():
            # tâche annulée avant même d’avoir démarré : _load n’a pas pu remettre l’entrée à zéro
            entry = self._entries.get(name)
            if isinstance(entry, _Loading) and entry.task is task:
                self._entries[name] = _Unloaded()
            return
        # Évite "Task exception was never retrieved" quand tous les appelants ont abandonné
        task.exception()
