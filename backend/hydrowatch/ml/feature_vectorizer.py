from __future__ import annotations

import math
from typing import Iterable, Mapping, Tuple

from hydrowatch.ml.errors import InvalidFeatureError

"""
ML Feature Vectorizer.

Rôle (fonctionnel) :
- Convertit les mesures “métier” en vecteurs numériques immuables (FeatureVector = tuple de floats).
- Garantit un ordre stable des features entre la génération des artefacts et l’inférence.

Vecteurs produits :
- source-detection : pollution (n mesures normalisées) + coordonnées (lat, lng)
- health-risk      : [hmpi, population, horizon encodé]
- data-quality     : arsenic, lead, mercury, iron, uranium (dans cet ordre)

Notes :
- Toute évolution de l’ordre ou de l’encodage impacte les modèles : à versionner.
"""

FeatureVector = Tuple[float, ...]

# Horizon de prévision -> valeur numérique (années)
TIMEFRAME_ENCODING: Mapping[str, float] = {
    "6months": 0.5,
    "1year": 1.0,
    "5years": 5.0,
}
DEFAULT_TIMEFRAME_VALUE = 1.0

# Paramètres suivis par le contrôle qualité (ordre = ordre des features)
QUALITY_PARAMETERS: Tuple[str, ...] = ("arsenic", "lead", "mercury", "iron", "uranium")


def _as_float(value: object) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidFeatureError(value) from exc
    if math.isnan(out) or math.isinf(out):
        raise InvalidFeatureError(value)
    return out


def feature_vector(values: Iterable[object]) -> FeatureVector:
    """Vecteur générique : valide que chaque valeur est un nombre fini (InvalidFeatureError sinon)."""
    return tuple(_as_float(v) for v in values)


def encode_timeframe(timeframe: str) -> float:
    """Encode l’horizon (“6months”, “1year”, “5years”) ; toute autre valeur vaut 1.0."""
    return TIMEFRAME_ENCODING.get(timeframe, DEFAULT_TIMEFRAME_VALUE)


def source_detection_features(pollution: Iterable[float], geo: Iterable[float]) -> FeatureVector:
    return feature_vector(list(pollution) + list(geo))


def health_risk_features(hmpi: float, population: float, timeframe: str) -> FeatureVector:
    return feature_vector([hmpi, population, encode_timeframe(timeframe)])


def data_quality_features(readings: Iterable[float]) -> FeatureVector:
    return feature_vector(readings)


def quality_readings(values: Mapping[str, object]) -> FeatureVector:
    """
    Construit le vecteur qualité depuis un formulaire {paramètre: valeur}.

    Un paramètre absent, vide ou non numérique vaut 0.0 (même règle que la saisie du tableau de bord).
    """
    out = []
    for param in QUALITY_PARAMETERS:
        raw = values.get(param)
        try:
            out.append(_as_float(raw) if raw not in (None, "") else 0.0)
        except InvalidFeatureError:
            out.append(0.0)
    return tuple(out)
