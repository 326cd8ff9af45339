# Fichier: lexify/api/endpoints/notification_ws.py
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from lexify.api.dependencies import get_current_user_from_websocket, get_db
from lexify.notifications.websocket_manager import notification_socket_manager

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def notifications_ws(websocket: WebSocket, db: Session = Depends(get_db)):
    try:
        current_user = get_current_user_from_websocket(websocket, db)
    except HTTPException as exc:
        if exc.detail == "token_expired":
            logger.warning("WebSocket refused: token expired.")
        else:
            logger.warning("WebSocket refused: %s.", exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = current_user.id
    await notification_socket_manager.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        notification_socket_manager.disconnect(user_id, websocket)
