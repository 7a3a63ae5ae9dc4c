from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

import numpy as np

"""
ML Dense Model.

Rôle (fonctionnel) :
- Petit réseau “dense” (couches entièrement connectées) en numpy pur, sérialisable via joblib.
- Sert de format d’artefact illustratif pour les trois modèles du tableau de bord
  (voir scripts/build_demo_models.py) : poids fixés à la main, aucun entraînement.

Contrat (identique à ce qu’attend le registry) :
- predict(X) avec X de forme [batch, input_width] -> ndarray [batch, output_width]
"""

ACTIVATIONS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "linear": lambda z: z,
    "relu": lambda z: np.maximum(z, 0.0),
    "sigmoid": lambda z: 1.0 / (1.0 + np.exp(-z)),
    "tanh": np.tanh,
}


@dataclass
class DenseLayer:
    """Couche y = activation(x @ weights + bias)."""
    weights: np.ndarray   # [in, out]
    bias: np.ndarray      # [out]
    activation: str = "linear"

    def __post_init__(self) -> None:
        self.weights = np.asarray(self.weights, dtype=np.float64)
        self.bias = np.asarray(self.bias, dtype=np.float64).reshape(-1)
        if self.weights.ndim != 2 or self.weights.shape[1] != self.bias.shape[0]:
            raise ValueError(f"incompatible layer shapes: weights={self.weights.shape} bias={self.bias.shape}")
        if self.activation not in ACTIVATIONS:
            raise ValueError(f"unknown activation: {self.activation}")

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return ACTIVATIONS[self.activation](x @ self.weights + self.bias)


@dataclass
class DenseModel:
    """Empilement de couches denses, avec normalisation optionnelle des entrées."""
    layers: List[DenseLayer]
    input_scale: Sequence[float] = field(default_factory=list)

    @property
    def input_width(self) -> int:
        return int(self.layers[0].weights.shape[0])

    @property
    def output_width(self) -> int:
        return int(self.layers[-1].weights.shape[1])

    def predict(self, x: np.ndarray) -> np.ndarray:
        out = np.asarray(x, dtype=np.float64)
        if out.ndim != 2 or out.shape[1] != self.input_width:
            raise ValueError(f"expected input of shape [batch, {self.input_width}], got {list(out.shape)}")
        if len(self.input_scale):
            # Ramène les entrées (population, coordonnées…) dans un ordre de grandeur commun
            out = out / np.asarray(self.input_scale, dtype=np.float64)
        for layer in self.layers:
            out = layer(out)
        return out
