from __future__ import annotations

from typing import Any, Dict

"""
ML Errors.

Rôle (fonctionnel) :
- Taxonomie des erreurs de la couche d’inférence.
- Chaque erreur porte un `code` stable (traduit en statut HTTP par hydrowatch.core.errors)
  et des `details()` sérialisables pour le payload d’erreur.

Hiérarchie :
- InferenceError
  - ModelLoadError        : récupération / désérialisation de l’artefact impossible
  - ModelNotLoadedError   : inférence demandée alors que le modèle n’est pas prêt
  - ShapeMismatchError    : largeur du vecteur ≠ largeur attendue par le modèle
  - UnknownPipelineError  : pipeline inconnu
  - InvalidFeatureError   : valeur de feature non numérique ou non finie (NaN, ±inf)
"""


class InferenceError(Exception):
    """Erreur générique de la couche d’inférence."""

    code = "INFERENCE_FAILED"

    def details(self) -> Dict[str, Any]:
        return {}


class ModelLoadError(InferenceError):
    code = "MODEL_LOAD_FAILED"

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Failed to load model '{name}': {cause}")
        self.name = name
        self.cause = cause

    def details(self) -> Dict[str, Any]:
        return {"model": self.name, "cause": type(self.cause).__name__}


class ModelNotLoadedError(InferenceError):
    code = "MODEL_NOT_LOADED"

    def __init__(self, name: str) -> None:
        super().__init__(f"Model '{name}' is not loaded")
        self.name = name

    def details(self) -> Dict[str, Any]:
        return {"model": self.name}


class ShapeMismatchError(InferenceError):
    code = "SHAPE_MISMATCH"

    def __init__(self, name: str, expected: int, actual: int) -> None:
        super().__init__(f"Model '{name}' expects {expected} features, got {actual}")
        self.name = name
        self.expected = expected
        self.actual = actual

    def details(self) -> Dict[str, Any]:
        return {"model": self.name, "expected": self.expected, "actual": self.actual}


class UnknownPipelineError(InferenceError):
    code = "UNKNOWN_PIPELINE"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown pipeline '{name}'")
        self.name = name

    def details(self) -> Dict[str, Any]:
        return {"pipeline": self.name}


class InvalidFeatureError(InferenceError):
    code = "INVALID_FEATURES"

    def __init__(self, value: object) -> None:
        super().__init__(f"Feature value must be a finite number, got {value!r}")
        self.value = value

    def details(self) -> Dict[str, Any]:
        return {"value": repr(self.value)}
