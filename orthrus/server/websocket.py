"""
WebSocket handling for real-time table communication.

This module provides:
- TableRoom: the shared table plus its host and player connections
- WebSocket endpoint: decodes client messages and dispatches them to the room

Protocol (every message is a JSON object with a ``type``):
    host:join                          -> host:welcome, state:update
    player:join {name}                 -> player:accepted {id} | player:reject {reason}
    player:rejoin {seat_id}            -> player:accepted {id} | player:reject {reason}
    player:action {action, amount}
    host:start / host:nextHandNow / host:endGame
    host:removePlayer {seat_id}        -> player:removed (to the removed seat)

After every table change each host receives the full projection and each
player its own seat projection as ``state:update``.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Set, Tuple
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from orthrus.core.betting import Action
from orthrus.core.errors import JoinRejected
from orthrus.core.table import Table
from orthrus.server.schemas import (
    InboundMessage, PlayerJoinMessage, PlayerRejoinMessage, PlayerActionMessage,
    RemoveSeatMessage, HostWelcomeMessage, PlayerAcceptedMessage,
    PlayerRejectMessage, PlayerRemovedMessage, ErrorMessage,
)


logger = logging.getLogger(__name__)


class TableRoom:
    """
    Connections attached to the single table.

    Usage:
        room = TableRoom(table)
        await room.handle_message(websocket, InboundMessage(type="host:join"))
        await room.disconnect(websocket)
    """

    def __init__(self, table: Table):
        self.table = table
        self.hosts: List[WebSocket] = []
        self.players: Dict[str, WebSocket] = {}  # seat_id -> socket
        self._tasks: Set[asyncio.Task] = set()
        table.add_listener(self._on_table_change)

    # ------------------------------------------------------------------ #
    # Broadcasting
    # ------------------------------------------------------------------ #

    def state_messages(self) -> List[Tuple[WebSocket, Dict[str, Any]]]:
        """Projections for every connection, taken from the current state."""
        messages = []
        full = self.table.full_snapshot()
        for ws in self.hosts:
            messages.append((ws, {"type": "state:update", **full}))
        for seat_id, ws in self.players.items():
            state = self.table.seat_snapshot(seat_id)
            if state is not None:
                messages.append((ws, {"type": "state:update", **state}))
        return messages

    def _on_table_change(self) -> None:
        # Snapshot now, send later: observers only see the settled state.
        messages = self.state_messages()
        if not messages:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; skipping broadcast")
            return
        task = loop.create_task(self._send_all(messages))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send_all(self, messages: List[Tuple[WebSocket, Dict[str, Any]]]):
        for ws, message in messages:
            await self.send(ws, message)

    async def send(self, ws: WebSocket, message: Any):
        if isinstance(message, BaseModel):
            message = message.model_dump()
        try:
            await ws.send_json(message)
        except Exception as e:
            logger.warning(f"Error sending {message.get('type')} to client: {e}")

    async def send_state(self, ws: WebSocket, seat_id: Optional[str] = None):
        state = self.table.full_snapshot() if seat_id is None else self.table.seat_snapshot(seat_id)
        if state is not None:
            await self.send(ws, {"type": "state:update", **state})

    # ------------------------------------------------------------------ #
    # Room-level operations shared by WebSocket and HTTP
    # ------------------------------------------------------------------ #

    async def remove_seat(self, seat_id: str) -> bool:
        ws = self.players.pop(seat_id, None)
        removed = self.table.remove_seat(seat_id)
        if ws is not None:
            await self.send(ws, PlayerRemovedMessage())
        return removed

    async def reset(self):
        players = list(self.players.values())
        self.players.clear()
        self.table.reset_table()
        for ws in players:
            await self.send(ws, PlayerRemovedMessage())

    def seat_for(self, ws: WebSocket) -> Optional[str]:
        for seat_id, sock in self.players.items():
            if sock is ws:
                return seat_id
        return None

    async def disconnect(self, ws: WebSocket):
        self.hosts = [h for h in self.hosts if h is not ws]
        seat_id = self.seat_for(ws)
        if seat_id is not None:
            del self.players[seat_id]
            self.table.disconnect(seat_id)

    # ------------------------------------------------------------------ #
    # Message dispatch
    # ------------------------------------------------------------------ #

    async def handle_message(self, ws: WebSocket, message: InboundMessage):
        """
        Dispatch one decoded client message.

        Raises:
            ValidationError: If the payload does not match the message type
        """
        payload = message.model_extra or {}
        msg_type = message.type

        if msg_type == "host:join":
            if not any(h is ws for h in self.hosts):
                self.hosts.append(ws)
            await self.send(ws, HostWelcomeMessage())
            await self.send_state(ws)

        elif msg_type == "player:join":
            req = PlayerJoinMessage.model_validate(payload)
            try:
                seat = self.table.join(req.name)
            except JoinRejected as e:
                logger.warning(f"Join rejected: {e.reason}")
                await self.send(ws, PlayerRejectMessage(reason=e.reason))
                return
            self.players[seat.seat_id] = ws
            await self.send(ws, PlayerAcceptedMessage(id=seat.seat_id))
            await self.send_state(ws, seat.seat_id)

        elif msg_type == "player:rejoin":
            req = PlayerRejoinMessage.model_validate(payload)
            if self.table.ledger.get(req.seat_id) is None:
                await self.send(ws, PlayerRejectMessage(reason="Unknown seat"))
                return
            self.players[req.seat_id] = ws
            await self.send(ws, PlayerAcceptedMessage(id=req.seat_id))
            self.table.reconnect(req.seat_id)

        elif msg_type == "player:action":
            req = PlayerActionMessage.model_validate(payload)
            seat_id = self.seat_for(ws)
            if seat_id is None:
                await self.send(ws, ErrorMessage(message="Not seated"))
                return
            action = Action.from_payload(seat_id, req.action, req.amount)
            if action is None:
                await self.send(ws, ErrorMessage(message=f"Invalid action: {req.action}"))
                return
            self.table.apply_action(action)

        elif msg_type == "host:start":
            self.table.start_table()

        elif msg_type == "host:nextHandNow":
            self.table.force_advance_now()

        elif msg_type == "host:endGame":
            await self.reset()

        elif msg_type == "host:removePlayer":
            req = RemoveSeatMessage.model_validate(payload)
            await self.remove_seat(req.seat_id)

        else:
            await self.send(ws, ErrorMessage(message=f"Unknown message type: {msg_type}"))


async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for table communication; see module docstring."""
    room: TableRoom = websocket.app.state.room
    await websocket.accept()

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = InboundMessage.model_validate_json(raw)
                await room.handle_message(websocket, message)
            except ValidationError as e:
                await room.send(websocket, ErrorMessage(message=f"Malformed message: {e.error_count()} error(s)"))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await room.disconnect(websocket)
