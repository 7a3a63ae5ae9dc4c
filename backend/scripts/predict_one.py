from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict

from hydrowatch.core.logging import setup_logging
from hydrowatch.core.request_id import ensure_request_id
from hydrowatch.core.settings import settings
from hydrowatch.ml.errors import InferenceError
from hydrowatch.ml.inference import PIPELINES, build_inference_service

"""
Script CLI: predict_one

Rôle (fonctionnel) :
- Exécute une prédiction unique sans passer par l’API, avec la même racine de composition
  (settings -> source d’artefacts -> registry -> InferenceService).
- Affiche le résultat en JSON, ou le code d’erreur d’inférence.

Usage typique :
    python -m scripts.predict_one health-risk 75 100000 1
    python -m scripts.predict_one data-quality 0.01 0.02 0.001 0.3 0.01
"""


async def run(pipeline: str, features: list[float]) -> int:
    svc = build_inference_service(settings)
    try:
        res = await svc.infer(pipeline, features)
    except InferenceError as exc:
        print(json.dumps({"error": exc.code, "message": str(exc), "details": exc.details()}))
        return 1
    finally:
        await svc.registry.aclose()

    out = asdict(res)
    if "severity" in out:
        out["severity"] = out["severity"].value
    print(json.dumps({"pipeline": pipeline, "result": out, "live_buffers": svc.allocator.live_count}))
    return 0


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("pipeline", choices=sorted(PIPELINES))
    ap.add_argument("features", nargs="+", type=float)
    args = ap.parse_args()

    setup_logging(settings.LOG_LEVEL)
    ensure_request_id()
    raise SystemExit(asyncio.run(run(args.pipeline, args.features)))


if __name__ == "__main__":
    main()
