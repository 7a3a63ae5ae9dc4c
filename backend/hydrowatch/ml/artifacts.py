from __future__ import annotations

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
import joblib

"""
ML Artifact Sources.

Rôle (fonctionnel) :
- Localise et désérialise l’artefact d’un modèle à partir de son nom.
- Deux sources :
  - FileArtifactSource : bundles .joblib dans un dossier local (backend/models par défaut)
  - HttpArtifactSource : mêmes bundles téléchargés depuis <MODELS_BASE_URL>/<fichier>
- Retourne un LoadedArtifact (model + meta) ; toute erreur remonte telle quelle,
  c’est le registry qui la convertit en ModelLoadError.

Format attendu d’un bundle :
- dict { "model": <objet avec predict(X)>, "meta": {"input_width": ..., "model_version": ...} }
- un objet “nu” exposant predict(X) est aussi accepté (meta vide).

Notes :
- joblib.load exécute du pickle : la source (dossier ou URL) doit être de confiance.
- La désérialisation tourne dans un thread (asyncio.to_thread) pour ne pas bloquer la boucle.
"""

logger = logging.getLogger("hydrowatch.ml.artifacts")

# Nom de modèle -> fichier d’artefact
DEFAULT_FILENAMES: Dict[str, str] = {
    "source-detection": "contamination-source-model.joblib",
    "health-risk": "health-risk-model.joblib",
    "data-quality": "data-quality-model.joblib",
}


@dataclass(frozen=True)
class LoadedArtifact:
    """Artefact désérialisé : objet modèle + métadonnées."""
    model: Any
    meta: Dict[str, Any] = field(default_factory=dict)


def unpack_bundle(bundle: Any, origin: str) -> LoadedArtifact:
    """Normalise un bundle joblib (dict ou objet nu) et vérifie le contrat predict()."""
    if isinstance(bundle, Mapping):
        if "model" not in bundle:
            raise ValueError(f"bundle {origin} has no 'model' entry")
        model = bundle["model"]
        meta = dict(bundle.get("meta") or {})
    else:
        model, meta = bundle, {}

    if not callable(getattr(model, "predict", None)):
        raise TypeError(f"artifact {origin} does not expose predict()")

    return LoadedArtifact(model=model, meta=meta)


class ArtifactSource(ABC):
    """Source d’artefacts adressable par nom de modèle."""

    def __init__(self, filenames: Optional[Mapping[str, str]] = None) -> None:
        self.filenames: Dict[str, str] = dict(filenames or DEFAULT_FILENAMES)

    def filename_for(self, name: str) -> str:
        try:
            return self.filenames[name]
        except KeyError:
            raise LookupError(f"no artifact registered for model '{name}'") from None

    @abstractmethod
    async def fetch(self, name: str) -> LoadedArtifact:
        """Récupère et désérialise l’artefact du modèle `name`."""


class FileArtifactSource(ArtifactSource):
    def __init__(self, models_dir: Path | str, filenames: Optional[Mapping[str, str]] = None) -> None:
        super().__init__(filenames)
        self.models_dir = Path(models_dir)

    def path_for(self, name: str) -> Path:
        return self.models_dir / self.filename_for(name)

    async def fetch(self, name: str) -> LoadedArtifact:
        path = self.path_for(name)
        return await asyncio.to_thread(self._load, path)

    @staticmethod
    def _load(path: Path) -> LoadedArtifact:
        if not path.exists():
            raise FileNotFoundError(f"model artifact not found: {path}")
        return unpack_bundle(joblib.load(path), str(path))


class HttpArtifactSource(ArtifactSource):
    def __init__(
        self,
        base_url: str,
        filenames: Optional[Mapping[str, str]] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(filenames)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # transport injectable (tests : httpx.MockTransport)
        self._transport = transport

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/{self.filename_for(name)}"

    async def fetch(self, name: str) -> LoadedArtifact:
        url = self.url_for(name)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url)
            response.raise_for_status()
        logger.debug("artifact downloaded", extra={"model": name, "path": url})
        bundle = await asyncio.to_thread(joblib.load, io.BytesIO(response.content))
        return unpack_bundle(bundle, url)


def build_artifact_source(models_dir: Path | str, base_url: str = "") -> ArtifactSource:
    """Choisit la source selon la config : HTTP si une URL est fournie, sinon dossier local."""
    if base_url:
        return HttpArtifactSource(base_url)
    return FileArtifactSource(models_dir)
