from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

"""
Schemas Monitoring (Pydantic).

Rôle (fonctionnel) :
- Contrat des routes de démonstration /api/* (relevés HMPI, signalements, alertes).
- Les signalements citoyens ne sont pas validés champ par champ : tout objet JSON est accepté
  et renvoyé dans `data`.
- Les alertes d’urgence suivent le formulaire du tableau de bord (lieu, sévérité, message
  optionnel, canaux SMS / WhatsApp / Email).
"""

AlertSeverity = Literal["low", "medium", "high", "critical"]


class MonitoringSite(BaseModel):
    id: int
    location: str
    hmpi: float


class Acknowledgement(BaseModel):
    message: str
    data: Dict[str, Any]


class EmergencyAlertIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: str = Field(min_length=1)
    severity: AlertSeverity = "high"
    # vide -> message généré selon la sévérité
    custom_message: Optional[str] = None
    sms: bool = True
    whatsapp: bool = True
    email: bool = True


class EmergencyAlertOut(BaseModel):
    id: str
    severity: AlertSeverity
    location: str
    message: str
    timestamp: str
    channels: List[str]
    recipients: int
    status: str


class EmergencyAlertAck(BaseModel):
    message: str
    data: EmergencyAlertOut
