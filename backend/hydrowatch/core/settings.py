from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

"""
Core Settings.

Rôle (fonctionnel) :
- Centralise la configuration de l’application via variables d’environnement (Pydantic Settings).
- Charge un fichier .env (par défaut backend/.env) pour faciliter le dev/local.
- Fournit un objet global `settings` importable dans tout le projet.

Organisation :
- App : nom, env, debug, niveau de log, seuil “slow request”.
- CORS : origines autorisées (front dashboard).
- Auth (démo) : API_KEY.
- Rate limit : activation + RPM.
- Modèles : dossier local des artefacts, URL distante optionnelle, timeout de chargement, warm-up.
- Prédictions : seuil de validité pour le contrôle qualité des données.
"""

# Pointe toujours vers backend/.env (racine backend/)
ENV_PATH = Path(__file__).resolve().parents[2] / ".env"  # backend/.env

# Dossier par défaut des artefacts modèles (backend/models)
DEFAULT_MODELS_DIR = Path(__file__).resolve().parents[2] / "models"


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "HydroWatch API"
    ENV: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 800

    # --- CORS ---
    # Liste CSV des origines autorisées (ex: front React)
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # --- Auth (démo) ---
    # Clé API optionnelle. Si vide : bypass en dev (voir core/security.py).
    API_KEY: str = ""

    # --- Rate limit (optionnel) ---
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_RPM: int = 120

    # --- Modèles ---
    # Source fichier (joblib) utilisée si MODELS_BASE_URL est vide
    MODELS_DIR: Path = DEFAULT_MODELS_DIR

    # Source HTTP : si renseignée, les artefacts sont téléchargés depuis <base_url>/<fichier>
    MODELS_BASE_URL: str = ""

    # 0 = pas de timeout sur le chargement d’un modèle
    MODEL_LOAD_TIMEOUT_S: float = 0.0

    # Pré-chargement des modèles au démarrage (best-effort)
    WARMUP_ON_STARTUP: bool = True

    # --- Prédictions ---
    # Score brut du modèle qualité au-dessus duquel une mesure est jugée valide
    QUALITY_VALID_THRESHOLD: float = 0.7

    # Config Pydantic Settings
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instance globale importable
settings = Settings()
