from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from ..engine.services import ContestServices, build_services
from ..utils.config_manager import ConfigManager
from ..utils.logger_config import get_logger
from .blueprint import api_bp
from .realtime import SocketIOSink, register_socket_handlers

logger = get_logger("app")


def create_app(config: Optional[ConfigManager] = None, services: Optional[ContestServices] = None) -> Flask:
    """
    Create the Flask application with the HTTP API and the Socket.IO channel.

    The SocketIO instance is available as ``app.extensions["socketio"]``
    and the engine services as ``app.extensions["judgearena"]``.
    """
    config = config or (services.config if services else ConfigManager())
    services = services or build_services(config)

    origins = config.get("server.cors_origins", "*")
    if isinstance(origins, str) and origins != "*":
        origins = [origins]

    app = Flask(__name__)
    app.extensions["judgearena"] = services
    CORS(app, origins=origins)
    app.register_blueprint(api_bp)

    socketio = SocketIO(app, async_mode="threading", cors_allowed_origins=origins)
    register_socket_handlers(socketio, services)
    services.dispatcher.subscribe(SocketIOSink(socketio))

    logger.info("Created Flask application")
    return app
