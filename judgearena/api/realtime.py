"""Socket.IO broadcast of engine events."""

from flask import request
from flask_socketio import SocketIO, emit

from ..engine.events import Event
from ..engine.services import ContestServices
from ..utils.logger_config import get_logger

logger = get_logger("realtime")


class SocketIOSink:
    """Event sink that broadcasts every event to all connected clients."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def __call__(self, event: Event) -> None:
        payload = event.payload()
        if payload is None:
            self.socketio.emit(event.name)
        else:
            self.socketio.emit(event.name, payload)


def register_socket_handlers(socketio: SocketIO, services: ContestServices) -> None:
    @socketio.on("connect")
    def handle_connect(auth=None):
        logger.debug(f"Client connected: {request.sid}")
        # New clients get the current contest state straight away
        emit("contestStatusUpdate", services.contest.state.value)

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        logger.debug(f"Client disconnected: {request.sid}")
