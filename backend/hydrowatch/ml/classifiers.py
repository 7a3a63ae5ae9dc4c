from __future__ import annotations

from enum import Enum
from typing import List, Sequence

"""
ML Classifiers.

Rôle (fonctionnel) :
- Fonctions pures (sans I/O) qui traduisent une sortie brute de modèle en label métier.
- categorize_severity : score de risque continu -> Low / Moderate / High / Critical
- detect_anomalies    : liste d’anomalies détectées sur une saisie qualité
"""


class Severity(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


# Bornes supérieures strictes : 0.2 est donc Moderate, 0.8 Critical
SEVERITY_BOUNDS = (
    (0.2, Severity.LOW),
    (0.5, Severity.MODERATE),
    (0.8, Severity.HIGH),
)


def categorize_severity(risk: float) -> Severity:
    for upper, severity in SEVERITY_BOUNDS:
        if risk < upper:
            return severity
    return Severity.CRITICAL


def detect_anomalies(readings: Sequence[float], predictions: Sequence[float]) -> List[str]:
    """
    Anomalies détectées sur une saisie.

    Aucune règle métier n’est définie pour l’instant : retourne toujours une liste vide
    (“aucune anomalie”). Point d’extension pour une vraie détection.
    """
    return []
