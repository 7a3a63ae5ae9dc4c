"""
hydrowatch.schemas

Package des schémas API (Pydantic).

Rôle (fonctionnel) :
- Définit les modèles d’entrée/sortie utilisés par l’API (request/response).
- Sépare clairement :
  - les résultats internes (dataclasses de hydrowatch.ml.inference / services)
  - les schémas Pydantic (hydrowatch.schemas) = contrat HTTP / validation

Usage :
- Les endpoints FastAPI déclarent response_model=... et valident les payloads avec ces schémas.
"""
