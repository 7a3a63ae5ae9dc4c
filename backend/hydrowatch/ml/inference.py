from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union, cast

from hydrowatch.core.settings import Settings
from hydrowatch.ml.artifacts import build_artifact_source
from hydrowatch.ml.classifiers import Severity, categorize_severity, detect_anomalies
from hydrowatch.ml.errors import InferenceError, ModelNotLoadedError, ShapeMismatchError, UnknownPipelineError
from hydrowatch.ml.feature_vectorizer import (
    FeatureVector,
    data_quality_features,
    feature_vector,
    health_risk_features,
    source_detection_features,
)
from hydrowatch.ml.model_registry import ModelHandle, ModelRegistry
from hydrowatch.ml.tensors import TensorAllocator

"""
ML Inference.

Rôle (fonctionnel) :
- Transforme un FeatureVector en résultat de prédiction métier via exactement un modèle nommé.
- Trois pipelines :
  - source-detection : 4 scores de confiance (industrial, agricultural, urban, natural)
  - health-risk      : hausse de risque + confiance + sévérité (classifier)
  - data-quality     : validité (score brut > seuil) + confiance + anomalies

Déroulé d’un appel infer(pipeline, features) :
1. registry.ensure_loaded(modèle) (chargement single-flight au premier usage)
2. contrôle de largeur (ShapeMismatchError avant toute allocation)
3. buffer d’entrée [1, n] -> modèle (attendu) -> buffer de sortie -> lecture des floats
4. libération des deux buffers sur tous les chemins (TensorScope)
5. mapping index -> champ, bornage des valeurs, classifiers

Notes :
- Aucun résultat partiel : soit l’appel réussit entièrement, soit il lève.
- Les erreurs remontent à l’appelant ; seul ensure_models_loaded() (warm-up) les journalise.
"""

logger = logging.getLogger("hydrowatch.ml.inference")

SOURCE_DETECTION = "source-detection"
HEALTH_RISK = "health-risk"
DATA_QUALITY = "data-quality"

SOURCE_LABELS: Tuple[str, ...] = ("industrial", "agricultural", "urban", "natural")


@dataclass(frozen=True)
class SourceDetectionResult:
    """Confiances par origine de contamination (dans [0,1], somme libre)."""
    industrial: float
    agricultural: float
    urban: float
    natural: float

    def ranked(self) -> List[Tuple[str, float]]:
        """(origine, score) triés du plus probable au moins probable."""
        pairs = [(label, getattr(self, label)) for label in SOURCE_LABELS]
        return sorted(pairs, key=lambda p: p[1], reverse=True)


@dataclass(frozen=True)
class HealthRiskResult:
    risk_increase: float      # >= 0
    confidence: float         # [0,1]
    severity: Severity


@dataclass(frozen=True)
class DataQualityResult:
    is_valid: bool
    confidence: float         # [0,1], = score brut
    anomalies: List[str] = field(default_factory=list)


PredictionResult = Union[SourceDetectionResult, HealthRiskResult, DataQualityResult]


@dataclass(frozen=True)
class PipelineSpec:
    """Description statique d’un pipeline : modèle, largeur par défaut, sorties requises."""
    name: str
    model: str
    default_width: int
    outputs: int


# La largeur déclarée par l’artefact (meta.input_width) prime sur default_width
PIPELINES: Dict[str, PipelineSpec] = {
    SOURCE_DETECTION: PipelineSpec(SOURCE_DETECTION, model="source-detection", default_width=7, outputs=4),
    HEALTH_RISK: PipelineSpec(HEALTH_RISK, model="health-risk", default_width=3, outputs=2),
    DATA_QUALITY: PipelineSpec(DATA_QUALITY, model="data-quality", default_width=5, outputs=1),
}

MODEL_NAMES: Tuple[str, ...] = tuple(spec.model for spec in PIPELINES.values())


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))


class InferenceService:
    """
    Orchestration des prédictions (registry + buffers + mapping métier).

    Une instance par process, construite par la racine de composition
    (lifespan FastAPI ou script) et injectée chez les appelants.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        allocator: Optional[TensorAllocator] = None,
        *,
        quality_threshold: float = 0.7,
    ) -> None:
        self.registry = registry
        self.allocator = allocator or TensorAllocator()
        self.quality_threshold = quality_threshold
        self._mappers: Dict[str, Callable[[FeatureVector, List[float]], PredictionResult]] = {
            SOURCE_DETECTION: self._map_source_detection,
            HEALTH_RISK: self._map_health_risk,
            DATA_QUALITY: self._map_data_quality,
        }

    # --- Cycle de vie des modèles ---

    async def ensure_models_loaded(self) -> Dict[str, bool]:
        """
        Warm-up : tente de charger tous les modèles, ne lève jamais.

        Retourne {modèle: prêt ?}. Un modèle en échec reste FAILED et sera
        rechargé au prochain appel qui en a besoin.
        """
        results = await asyncio.gather(
            *(self.registry.ensure_loaded(name) for name in MODEL_NAMES),
            return_exceptions=True,
        )
        status: Dict[str, bool] = {}
        for name, res in zip(MODEL_NAMES, results):
            ok = isinstance(res, ModelHandle) and res.ready
            status[name] = ok
            if not ok:
                logger.warning("model_warmup_failed", extra={"model": name, "error": repr(res)})
        return status

    # --- Contrat générique ---

    async def infer(self, pipeline: str, features: Sequence[float]) -> PredictionResult:
        spec = PIPELINES.get(pipeline)
        if spec is None:
            raise UnknownPipelineError(pipeline)

        vector = feature_vector(features)
        handle = await self.registry.ensure_loaded(spec.model)
        if not handle.ready:
            raise ModelNotLoadedError(spec.model)

        expected = handle.input_width or spec.default_width
        if len(vector) != expected:
            raise ShapeMismatchError(spec.model, expected, len(vector))

        start = time.perf_counter()
        raw = await self._run(handle, vector)
        if len(raw) < spec.outputs:
            raise InferenceError(f"Model '{spec.model}' returned {len(raw)} values, expected {spec.outputs}")
        if not all(math.isfinite(v) for v in raw[: spec.outputs]):
            raise InferenceError(f"Model '{spec.model}' returned non-finite values")

        result = self._mappers[pipeline](vector, raw)
        logger.debug(
            "inference_done",
            extra={
                "pipeline": pipeline,
                "model": spec.model,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return result

    async def _run(self, handle: ModelHandle, vector: FeatureVector) -> List[float]:
        """Entrée [1, n] -> modèle -> floats ; les buffers sont libérés quoi qu’il arrive."""
        with self.allocator.scope() as scope:
            x = scope.tensor2d(vector, (1, len(vector)))
            output: Any = handle.model.predict(x.numpy())
            if inspect.isawaitable(output):
                output = await output
            try:
                y = scope.wrap(output)
            except (TypeError, ValueError) as exc:
                # sortie irrégulière (listes de longueurs différentes, objet non numérique)
                raise InferenceError(f"Model '{handle.name}' returned an unreadable output: {exc}") from exc
            return y.data()

    # --- Mapping sorties brutes -> résultats ---

    def _map_source_detection(self, vector: FeatureVector, raw: List[float]) -> SourceDetectionResult:
        return SourceDetectionResult(
            industrial=_unit(raw[0]),
            agricultural=_unit(raw[1]),
            urban=_unit(raw[2]),
            natural=_unit(raw[3]),
        )

    def _map_health_risk(self, vector: FeatureVector, raw: List[float]) -> HealthRiskResult:
        risk = max(0.0, raw[0])
        return HealthRiskResult(
            risk_increase=risk,
            confidence=_unit(raw[1]),
            severity=categorize_severity(risk),
        )

    def _map_data_quality(self, vector: FeatureVector, raw: List[float]) -> DataQualityResult:
        score = raw[0]
        return DataQualityResult(
            is_valid=score > self.quality_threshold,
            confidence=_unit(score),
            anomalies=detect_anomalies(vector, raw),
        )

    # --- Points d’entrée typés ---

    async def predict_contamination_source(
        self, pollution: Iterable[float], geo: Iterable[float]
    ) -> SourceDetectionResult:
        return cast(SourceDetectionResult, await self.infer(SOURCE_DETECTION, source_detection_features(pollution, geo)))

    async def assess_health_risk(self, hmpi: float, population: float, timeframe: str) -> HealthRiskResult:
        return cast(HealthRiskResult, await self.infer(HEALTH_RISK, health_risk_features(hmpi, population, timeframe)))

    async def validate_data_quality(self, readings: Iterable[float]) -> DataQualityResult:
        return cast(DataQualityResult, await self.infer(DATA_QUALITY, data_quality_features(readings)))


def build_inference_service(cfg: Settings) -> InferenceService:
    """Racine de composition : source d’artefacts + registry + allocateur à partir des settings."""
    source = build_artifact_source(cfg.MODELS_DIR, cfg.MODELS_BASE_URL)
    registry = ModelRegistry(source, load_timeout=cfg.MODEL_LOAD_TIMEOUT_S, names=MODEL_NAMES)
    return InferenceService(registry, TensorAllocator(), quality_threshold=cfg.QUALITY_VALID_THRESHOLD)
