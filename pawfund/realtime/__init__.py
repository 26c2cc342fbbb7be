import logging
import os

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

logger = logging.getLogger(__name__)

_raw = os.getenv("SOCKETIO_CORS_ORIGINS", "*").strip()
CORS_ORIGINS = "*" if _raw == "*" else [o.strip() for o in _raw.split(",") if o.strip()]
ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE", "eventlet")

socketio = SocketIO(cors_allowed_origins=CORS_ORIGINS, async_mode=ASYNC_MODE)


def case_room(case_id) -> str:
    return f"case:{case_id}"


def init_socketio(app):
    socketio.init_app(app)

    @socketio.on("connect")
    def handle_connect():
        logger.debug("socket connect origin=%s", request.headers.get("Origin"))
        emit("connected", {"ok": True})

    @socketio.on("disconnect")
    def handle_disconnect():
        logger.debug("socket disconnect")

    @socketio.on("join_case")
    def on_join(data):
        cid = (data or {}).get("case_id") or (data or {}).get("caseId")
        if not cid:
            emit("error", {"error": "case_id required"})
            return
        room = case_room(cid)
        join_room(room)
        emit("joined", {"room": room})

    @socketio.on("leave_case")
    def on_leave(data):
        cid = (data or {}).get("case_id") or (data or {}).get("caseId")
        if not cid:
            return
        room = case_room(cid)
        leave_room(room)
        emit("left", {"room": room})
