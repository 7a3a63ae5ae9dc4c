"""
Fixtures pytest du backend HydroWatch.

Les modèles sont des faux à sorties fixes ; la source d’artefacts compte les fetchs
pour vérifier le single-flight et la relance après échec.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import joblib
import numpy as np
import pytest

from hydrowatch.ml.artifacts import DEFAULT_FILENAMES, ArtifactSource, LoadedArtifact
from hydrowatch.ml.inference import InferenceService
from hydrowatch.ml.model_registry import ModelRegistry
from hydrowatch.ml.tensors import TensorAllocator
from scripts.build_demo_models import BUILDERS, bundle_for


class FakeModel:
    """predict() renvoie des sorties fixes et garde une copie de chaque entrée reçue."""

    def __init__(self, outputs: List[float], *, error: Optional[Exception] = None) -> None:
        self.outputs = outputs
        self.error = error
        self.calls: List[np.ndarray] = []

    def predict(self, x: np.ndarray) -> np.ndarray:
        self.calls.append(np.array(x, copy=True))
        if self.error is not None:
            raise self.error
        return np.array([self.outputs])


class CountingSource(ArtifactSource):
    """
    Source d’artefacts en mémoire.

    - fetches[name] : nombre de fetchs réellement émis
    - fail[name]    : exception levée par les fetchs suivants (tant qu’elle est présente)
    - gate          : si posé, chaque fetch l’attend (permet d’empiler des appelants concurrents)
    """

    def __init__(self, models: Dict[str, Any], meta: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        super().__init__()
        self.models = models
        self.meta = meta or {}
        self.fetches: Dict[str, int] = {}
        self.fail: Dict[str, Exception] = {}
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, name: str) -> LoadedArtifact:
        self.fetches[name] = self.fetches.get(name, 0) + 1
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if name in self.fail:
            raise self.fail[name]
        if name not in self.models:
            raise LookupError(name)
        return LoadedArtifact(model=self.models[name], meta=dict(self.meta.get(name, {})))


def default_models() -> Dict[str, FakeModel]:
    return {
        "source-detection": FakeModel([0.7, 0.2, 0.4, 0.1]),
        "health-risk": FakeModel([0.35, 0.9]),
        "data-quality": FakeModel([0.75]),
    }


@pytest.fixture
def models() -> Dict[str, FakeModel]:
    return default_models()


@pytest.fixture
def source(models) -> CountingSource:
    return CountingSource(models)


@pytest.fixture
def source_factory() -> Callable[..., CountingSource]:
    return CountingSource


@pytest.fixture
def allocator() -> TensorAllocator:
    return TensorAllocator()


@pytest.fixture
def make_service(allocator) -> Callable[[ArtifactSource], InferenceService]:
    def _make(src: ArtifactSource, **kwargs: Any) -> InferenceService:
        return InferenceService(ModelRegistry(src), allocator, **kwargs)

    return _make


@pytest.fixture
def service(make_service, source) -> InferenceService:
    return make_service(source)


@pytest.fixture
def run():
    """Exécute une coroutine depuis un test synchrone."""
    return asyncio.run


@pytest.fixture
def demo_models_dir(tmp_path):
    """Dossier contenant les trois artefacts de démonstration (scripts/build_demo_models)."""
    for name, build in BUILDERS.items():
        joblib.dump(bundle_for(name, build(), "test"), tmp_path / DEFAULT_FILENAMES[name])
    return tmp_path
