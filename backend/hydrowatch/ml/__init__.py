"""
hydrowatch.ml

Package “Machine Learning” (couche d’inférence) :
- artifacts          : sources d’artefacts (dossier local joblib / HTTP)
- model_registry     : cache 1 modèle par nom, chargement single-flight
- tensors            : buffers numériques jetables + allocateur instrumenté
- feature_vectorizer : construction des vecteurs d’entrée
- classifiers        : sévérité / anomalies (fonctions pures)
- inference          : pipelines source-detection / health-risk / data-quality
- dense              : format de modèle illustratif (réseau dense numpy)
- errors             : taxonomie des erreurs d’inférence

Note :
- Les modèles sont illustratifs : aucune garantie de précision sur les prédictions.
"""
