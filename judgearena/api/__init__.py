"""HTTP API and realtime channel for JudgeArena."""

from .app import create_app
from .blueprint import api_bp
from .realtime import SocketIOSink

__all__ = ["create_app", "api_bp", "SocketIOSink"]
