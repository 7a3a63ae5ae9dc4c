from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

"""
Monitoring Service (données de démonstration).

Rôle (fonctionnel) :
- Fournit les relevés HMPI affichés par le tableau de bord (valeurs figées, pas de base de données).
- Accuse réception des signalements citoyens sans les stocker.
- Compose les alertes d’urgence : message automatique selon la sévérité si aucun message
  n’est fourni, canaux de diffusion actifs, nombre de destinataires (fictif), statut initial.

Notes :
- Aucune persistance : les payloads reçus sont journalisés puis renvoyés.
- Aucun envoi réel : l’alerte reste au statut "pending", seule la diffusion WS a lieu.
"""

logger = logging.getLogger("hydrowatch.monitoring")

MONITORING_SITES: List[Dict[str, Any]] = [
    {"id": 1, "location": "Jaipur", "hmpi": 75.5},
    {"id": 2, "location": "Delhi", "hmpi": 120.2},
]

# Message par défaut d’une alerte, par sévérité ({location} est substitué)
ALERT_TEMPLATES: Dict[str, str] = {
    "low": "LOW ALERT: Elevated heavy metal levels detected in {location}. Monitor for updates.",
    "medium": "MEDIUM ALERT: Significant contamination in {location}. Avoid drinking tap water until further notice.",
    "high": "HIGH ALERT - DANGER: High pollution levels in {location}. Seek alternative water sources immediately.",
    "critical": (
        "CRITICAL EMERGENCY: Severe contamination in {location}. "
        "DO NOT USE WATER for any purpose. Follow official instructions."
    ),
}

ALERT_RECIPIENTS = 5000


def monitoring_data() -> List[Dict[str, Any]]:
    # copie : l’appelant peut modifier la liste sans toucher aux valeurs de référence
    return [dict(site) for site in MONITORING_SITES]


def acknowledge_citizen_report(report: Dict[str, Any]) -> Dict[str, Any]:
    logger.info("citizen report received (%s fields)", len(report))
    return {"message": "Report submitted successfully!", "data": report}


def alert_message(severity: str, location: str) -> str:
    return ALERT_TEMPLATES[severity].format(location=location)


def active_channels(*, sms: bool, whatsapp: bool, email: bool) -> List[str]:
    channels = []
    if sms:
        channels.append("SMS")
    if whatsapp:
        channels.append("WhatsApp")
    if email:
        channels.append("Email")
    return channels


def compose_alert(
    location: str,
    severity: str = "high",
    custom_message: Optional[str] = None,
    *,
    sms: bool = True,
    whatsapp: bool = True,
    email: bool = True,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Construit l’alerte diffusée (sévérité inconnue -> KeyError, la validation API l’empêche)."""
    ts = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "id": ts,
        "severity": severity,
        "location": location,
        "message": custom_message or alert_message(severity, location),
        "timestamp": ts,
        "channels": active_channels(sms=sms, whatsapp=whatsapp, email=email),
        "recipients": ALERT_RECIPIENTS,
        "status": "pending",
    }


def acknowledge_emergency_alert(alert: Dict[str, Any]) -> Dict[str, Any]:
    logger.warning("emergency alert triggered", extra={"alert_level": alert.get("severity")})
    return {"message": "Alert triggered!", "data": alert}
