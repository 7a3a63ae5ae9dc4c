"""
hydrowatch

Package racine du backend HydroWatch (surveillance de la qualité de l’eau).

Rôle (fonctionnel) :
- Orchestration d’inférence côté serveur : chargement paresseux des modèles, buffers
  numériques libérés sur tous les chemins, trois pipelines de prédiction
  (origine de contamination, risque sanitaire, qualité des données).
- API FastAPI consommée par le tableau de bord (prédictions, vues, routes de démo).

Organisation (haut niveau) :
- hydrowatch.api      : routes FastAPI (contrats HTTP, dépendances, sérialisation)
- hydrowatch.core     : briques transverses (settings, errors, logs, sécurité, realtime, rate-limit)
- hydrowatch.ml       : registry, buffers, vectorisation, classifiers, inférence
- hydrowatch.schemas  : schémas Pydantic (entrées/sorties API)
- hydrowatch.services : vues tableau de bord et données de démonstration
"""

__version__ = "0.1.0"
