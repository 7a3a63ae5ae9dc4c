from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Request

from hydrowatch.api.deps import DemoAuthDep
from hydrowatch.schemas.monitoring import Acknowledgement, EmergencyAlertAck, EmergencyAlertIn, MonitoringSite
from hydrowatch.services import monitoring_service

"""
API Monitoring (routes de démonstration).

Rôle (fonctionnel) :
- GET  /api/monitoring-data   : relevés HMPI figés.
- POST /api/citizen-reports   : accuse réception d’un signalement (201), sans stockage.
- POST /api/emergency-alerts  : compose l’alerte (message auto, canaux) et la pousse aux clients WS.

Notes :
- La diffusion WS est best-effort : l’absence de manager ou un client mort ne fait pas échouer la route.
"""

router = APIRouter(prefix="/api", tags=["monitoring"])

logger = logging.getLogger("hydrowatch.api.monitoring")


@router.get("/monitoring-data", response_model=List[MonitoringSite])
def get_monitoring_data():
    return monitoring_service.monitoring_data()


@router.post("/citizen-reports", response_model=Acknowledgement, status_code=201)
def submit_citizen_report(report: Dict[str, Any] = Body(...)):
    return monitoring_service.acknowledge_citizen_report(report)


@router.post("/emergency-alerts", response_model=EmergencyAlertAck, dependencies=[DemoAuthDep])
async def trigger_emergency_alert(request: Request, payload: EmergencyAlertIn):
    alert = monitoring_service.compose_alert(
        payload.location,
        payload.severity,
        payload.custom_message,
        sms=payload.sms,
        whatsapp=payload.whatsapp,
        email=payload.email,
    )
    ack = monitoring_service.acknowledge_emergency_alert(alert)

    manager = getattr(request.app.state, "ws_manager", None)
    if manager is not None:
        delivered = await manager.broadcast_json(
            {
                "type": "ALERT_TRIGGERED",
                "ts": datetime.now(timezone.utc).isoformat(),
                "data": alert,
            }
        )
        logger.info("emergency alert broadcast to %s clients", delivered)

    return ack
