"""
hydrowatch.core

Package “cœur” de l’application : tout ce qui est transversal (cross-cutting concerns),
indépendant des pipelines de prédiction eux-mêmes.

- settings
  Configuration (variables d’environnement, dossier / URL des modèles, seuils, flags).

- errors
  Format d’erreur API uniforme (code, message, status, request_id, timestamp) et
  traduction des erreurs d’inférence en statut HTTP.

- logging
  Logs JSON enrichis (request_id, modèle, pipeline, durée).

- request_id
  Identifiant de corrélation propagé de la requête jusqu’au chargement de modèle.

- rate_limit / security
  Limitation de débit en mémoire et API key de démo.

- realtime
  Manager WebSocket utilisé pour pousser les alertes d’urgence au tableau de bord.
"""
