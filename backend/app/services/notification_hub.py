from __future__ import annotations

import asyncio
from collections import defaultdict
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationHub:
    """Open notification websockets, grouped by user id."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[user_id].add(websocket)

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._drop(user_id, [websocket])

    def _drop(self, user_id: str, sockets: list[WebSocket]) -> None:
        active = self._connections.get(user_id)
        if active is None:
            return
        active.difference_update(sockets)
        if not active:
            self._connections.pop(user_id, None)

    async def _deliver(self, targets: dict[str, list[WebSocket]], payload: dict) -> None:
        stale: dict[str, list[WebSocket]] = defaultdict(list)
        for user_id, sockets in targets.items():
            for websocket in sockets:
                try:
                    await websocket.send_json(payload)
                except Exception:  # pragma: no cover - network/runtime dependent
                    stale[user_id].append(websocket)
        if not stale:
            return
        async with self._lock:
            for user_id, sockets in stale.items():
                self._drop(user_id, sockets)
        logger.debug("Dropped stale notification sockets for %d user(s)", len(stale))

    async def publish(self, user_id: str, payload: dict) -> None:
        async with self._lock:
            sockets = list(self._connections.get(user_id, ()))
        if sockets:
            await self._deliver({user_id: sockets}, payload)

    async def broadcast(self, payload: dict) -> None:
        async with self._lock:
            targets = {user_id: list(sockets) for user_id, sockets in self._connections.items()}
        if targets:
            await self._deliver(targets, payload)


notification_hub = NotificationHub()
