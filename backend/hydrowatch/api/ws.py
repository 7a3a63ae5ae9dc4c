from datetime import datetime, timezone

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

"""
API Realtime (WebSocket).

Rôle (fonctionnel) :
- Canal /ws/alerts sur lequel le tableau de bord reçoit les alertes d’urgence (ALERT_TRIGGERED).
- Le client peut envoyer "PING" et reçoit "PONG" (keep-alive côté UI).
"""

router = APIRouter(tags=["realtime"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.websocket("/ws/alerts")
async def ws_alerts(ws: WebSocket):
    manager = getattr(ws.app.state, "ws_manager", None)
    if manager is None:
        # WS non initialisé : erreur serveur
        await ws.close(code=1011)
        return

    await manager.connect(ws)
    await ws.send_json({"type": "WS_CONNECTED", "ts": _now()})

    try:
        while True:
            msg = await ws.receive_text()
            if msg.strip().upper() == "PING":
                await ws.send_json({"type": "PONG", "ts": _now()})
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(ws)
