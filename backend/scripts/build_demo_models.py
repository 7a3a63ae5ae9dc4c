from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import joblib
import numpy as np

from hydrowatch.core.settings import settings
from hydrowatch.ml.artifacts import DEFAULT_FILENAMES
from hydrowatch.ml.dense import DenseLayer, DenseModel

"""
Script CLI: build_demo_models

Rôle (fonctionnel) :
- Écrit les trois artefacts illustratifs chargés par le registry :
  - contamination-source-model.joblib (7 entrées -> 4 scores)
  - health-risk-model.joblib          (3 entrées -> hausse de risque + confiance)
  - data-quality-model.joblib         (5 entrées -> score de qualité)
- Chaque bundle suit le format {"model": DenseModel, "meta": {...}} attendu par hydrowatch.ml.artifacts.

Notes :
- Aucun entraînement : les poids sont fixés à la main pour produire des sorties plausibles.
  Les prédictions sont illustratives, sans garantie de précision.
- La largeur d’entrée est publiée dans meta.input_width : c’est elle que l’inférence contrôle.
"""


def source_detection_model() -> DenseModel:
    # entrées : 5 mesures de pollution (0..1) + lat + lng
    weights = np.array(
        [
            # industrial agricultural urban natural
            [1.6, 0.2, 0.6, -0.4],
            [0.3, 1.4, 0.2, 0.1],
            [0.2, 0.3, 1.2, -0.2],
            [1.1, -0.2, 0.4, 0.3],
            [-0.1, 0.6, 0.1, 1.0],
            [0.4, -0.3, 0.2, 0.1],   # lat / 90
            [0.2, 0.1, -0.2, 0.3],   # lng / 180
        ]
    )
    bias = np.array([-1.2, -0.9, -0.8, -0.6])
    return DenseModel(
        layers=[DenseLayer(weights, bias, "sigmoid")],
        input_scale=[1.0, 1.0, 1.0, 1.0, 1.0, 90.0, 180.0],
    )


def health_risk_model() -> DenseModel:
    # entrées : hmpi / 100, population / 1e6, horizon (années) / 5
    hidden = DenseLayer(
        np.array(
            [
                [1.2, 0.4, -0.3],
                [0.5, 0.2, 0.1],
                [0.9, -0.2, 0.6],
            ]
        ),
        np.array([-0.2, 0.1, 0.0]),
        "relu",
    )
    head = DenseLayer(
        np.array(
            [
                [1.4, -0.3],
                [0.2, 0.5],
                [0.6, -0.4],
            ]
        ),
        np.array([-1.5, 1.2]),
        "sigmoid",
    )
    return DenseModel(layers=[hidden, head], input_scale=[100.0, 1_000_000.0, 5.0])


def data_quality_model() -> DenseModel:
    # entrées : arsenic, lead, mercury, iron, uranium rapportés à un ordre de grandeur “normal” (mg/L)
    weights = np.array([[-0.8], [-0.7], [-0.9], [-0.3], [-0.6]])
    bias = np.array([2.0])
    return DenseModel(
        layers=[DenseLayer(weights, bias, "sigmoid")],
        input_scale=[0.05, 0.05, 0.006, 1.0, 0.03],
    )


BUILDERS = {
    "source-detection": source_detection_model,
    "health-risk": health_risk_model,
    "data-quality": data_quality_model,
}


def bundle_for(name: str, model: DenseModel, version: str) -> Dict[str, Any]:
    return {
        "model": model,
        "meta": {
            "kind": "dense",
            "name": name,
            "model_version": f"{name}_{version}",
            "input_width": model.input_width,
            "output_width": model.output_width,
            "built_at": datetime.now(timezone.utc).strftime("%Y%m%d-%H%M"),
        },
    }


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--version", default="v1", help="Tag de version (ex: v1, v2) publié dans meta.model_version")
    ap.add_argument("--out-dir", default=str(settings.MODELS_DIR), help="Dossier de sortie des artefacts")
    args = ap.parse_args()

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    for name, build in BUILDERS.items():
        out_path = out_dir / DEFAULT_FILENAMES[name]
        joblib.dump(bundle_for(name, build(), args.version), out_path)
        print("OK - saved:", out_path)


if __name__ == "__main__":
    main()
