"""
scripts

Package utilitaire pour les scripts ML / debug.

Rôle (fonctionnel) :
- build_demo_models : écrit les artefacts illustratifs chargés par le registry.
- predict_one       : exécute une prédiction en ligne de commande.

Note :
- Les scripts ne contiennent pas de logique métier “centrale” :
  ils orchestrent et appellent les modules de `hydrowatch/` (settings, ml…).
"""
