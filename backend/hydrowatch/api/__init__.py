"""
hydrowatch.api

Routes FastAPI : contrats HTTP, dépendances, sérialisation.
"""
