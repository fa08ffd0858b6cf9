"""
HTTP API Routes for Orthrus.

These routes expose read-only state, HTTP mirrors of the host controls and
the audit log download. Seated play happens over the WebSocket.
"""

from typing import Dict, Any
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.templating import Jinja2Templates
import os

from orthrus.core.audit import AuditLog
from orthrus.server.schemas import HostCommandResponse
from orthrus.server.websocket import TableRoom

router = APIRouter()

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def get_room(request: Request) -> TableRoom:
    """Get the room owned by the application."""
    return request.app.state.room


def _host_response(room: TableRoom, success: bool, message: str) -> HostCommandResponse:
    return HostCommandResponse(
        success=success,
        message=message,
        hand_id=room.table.hand_id,
        stage=room.table.stage.value,
    )


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Landing page with links to the host and player views."""
    table = get_room(request).table
    return templates.TemplateResponse(request, "index.html", {
        "stage": table.stage.value,
        "hand_id": table.hand_id,
        "seated": len(table.ledger),
        "table_max": table.config.table_max,
    })


@router.get("/state")
async def get_state(request: Request) -> Dict[str, Any]:
    """Full projection, every hole card visible."""
    return get_room(request).table.full_snapshot()


@router.get("/state/{seat_id}")
async def get_seat_state(seat_id: str, request: Request) -> Dict[str, Any]:
    """Projection for one seat."""
    state = get_room(request).table.seat_snapshot(seat_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Unknown seat")
    return state


@router.post("/host/start", response_model=HostCommandResponse)
async def host_start(request: Request):
    """Close the table and deal the first hand."""
    room = get_room(request)
    started = room.table.start_table()
    message = f"Hand #{room.table.hand_id} started" if started else "Cannot start table"
    return _host_response(room, started, message)


@router.post("/host/next-hand", response_model=HostCommandResponse)
async def host_next_hand(request: Request):
    """Settle the current hand now and deal the next one."""
    room = get_room(request)
    advanced = room.table.force_advance_now()
    message = "Advanced" if advanced else "No hand to advance"
    return _host_response(room, advanced, message)


@router.post("/host/reset", response_model=HostCommandResponse)
async def host_reset(request: Request):
    """Hard reset: unseat everyone and reopen the table."""
    room = get_room(request)
    await room.reset()
    return _host_response(room, True, "Table reset")


@router.delete("/seats/{seat_id}", response_model=HostCommandResponse)
async def remove_seat(seat_id: str, request: Request):
    """Remove a seat (deferred to settlement during a hand)."""
    room = get_room(request)
    if not await room.remove_seat(seat_id):
        raise HTTPException(status_code=404, detail="Unknown seat")
    return _host_response(room, True, "Seat removed")


@router.get("/latest-log")
async def latest_log(request: Request):
    """Download the newest audit CSV."""
    log_dir = get_room(request).table.config.log_dir
    path = AuditLog.latest(log_dir)
    if path is None:
        raise HTTPException(status_code=404, detail="No log files yet")
    return FileResponse(path, media_type="text/csv", filename=os.path.basename(path))
