"""
hydrowatch.services

Package “services” : logique applicative indépendante des endpoints HTTP.

- assessment_service : vues tableau de bord construites sur les prédictions
  (perspectives santé, contrôle qualité par paramètre, origines classées).
- monitoring_service : relevés de démonstration et accusés de réception
  (signalements citoyens, alertes d’urgence).

Principe :
- hydrowatch.api      = transport HTTP (routes, validation, dépendances)
- hydrowatch.services = orchestration réutilisable et testable sans HTTP
- hydrowatch.ml       = inférence
"""
