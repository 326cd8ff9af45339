# lexify/notifications/websocket_manager.py
import asyncio
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Set

import anyio
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketState

log = logging.getLogger("ws")


class NotificationSocketManager:
    """Open notification sockets, grouped by user id."""

    def __init__(self) -> None:
        self.connections: Dict[int, Set[WebSocket]] = {}

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.setdefault(user_id, set()).add(websocket)
        log.info("[WS CONNECT] user=%s sockets=%s", user_id, len(self.connections[user_id]))

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        sockets = self.connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            self.connections.pop(user_id, None)
        log.info("[WS DISCONNECT] user=%s remaining=%s", user_id, len(self.connections.get(user_id, ())))

    @staticmethod
    def _encode(payload: dict[str, Any]) -> str:
        encoded = jsonable_encoder(
            payload,
            custom_encoder={
                Enum: lambda e: getattr(e, "value", str(e)),
                datetime: lambda d: d.isoformat(),
            },
        )
        return json.dumps(encoded, ensure_ascii=False, separators=(",", ":"))

    async def _send(self, user_id: int, payload: dict[str, Any]) -> None:
        websockets = list(self.connections.get(user_id, ()))
        if not websockets:
            return

        # Encode once, before touching any socket.
        try:
            text = self._encode(payload)
        except (TypeError, ValueError):
            log.exception("[WS ENCODE ERROR] user=%s payload=%r", user_id, payload)
            return

        dead = []
        for ws in websockets:
            if ws.application_state != WebSocketState.CONNECTED:
                dead.append(ws)
                continue
            try:
                await ws.send_text(text)
            except Exception:
                log.exception("[WS SEND ERROR] user=%s", user_id)
                dead.append(ws)

        for ws in dead:
            self.disconnect(user_id, ws)

    async def notify_async(self, user_id: int, payload: dict[str, Any]) -> None:
        await self._send(user_id, payload)

    def notify(self, user_id: int, payload: dict[str, Any]) -> None:
        """Push from synchronous code: worker thread, running loop, or no loop at all."""
        if not self.connections.get(user_id):
            return
        try:
            anyio.from_thread.run(self._send, user_id, payload)
            return
        except RuntimeError:
            pass
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._send(user_id, payload))
            return
        loop.create_task(self._send(user_id, payload))


notification_socket_manager = NotificationSocketManager()
