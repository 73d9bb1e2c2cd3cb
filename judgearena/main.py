"""
Main entry point for the JudgeArena contest server.

Starts the Flask API together with its Socket.IO channel.
"""

import argparse
import os
import sys
from datetime import datetime

from .utils.config_manager import ConfigManager
from .utils.logger_config import get_logger, setup_logging


def setup_logging_from_config(config: ConfigManager) -> None:
    """Setup logging based on configuration"""
    log_config = config.get_section("log")
    port = config.get("server.port", 8080)

    log_dir = log_config.get("dir", "logs")
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = os.path.join(log_dir, f"server_{port}_{timestamp}.log")

    setup_logging(
        level=log_config.get("level", "INFO"),
        log_file=log_filename,
        enable_colors=log_config.get("enable_colors", True)
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='JudgeArena - programming contest judge server')

    parser.add_argument('--config', default='config/server_config.json',
                        help='Path to server configuration file')
    parser.add_argument('--host', help='Override host to bind the server')
    parser.add_argument('--port', type=int, help='Override port to bind the server')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Override log level')
    parser.add_argument('--log-dir', help='Override log directory')

    parser.add_argument('--db-path', help='Override database path')
    parser.add_argument('--sandbox-dir', help='Override sandbox base directory')
    parser.add_argument('--docker-image', help='Override the judging Docker image')
    return parser


def main():
    """Main entry point for the JudgeArena server CLI"""
    args = build_parser().parse_args()

    config = ConfigManager(args.config)

    if args.host:
        config.set("server.host", args.host)
    if args.port:
        config.set("server.port", args.port)
    if args.debug:
        config.set("log.level", "DEBUG")
    elif args.log_level:
        config.set("log.level", args.log_level)
    if args.log_dir:
        config.set("log.dir", args.log_dir)
    if args.db_path:
        config.set("db.path", args.db_path)
    if args.sandbox_dir:
        config.set("sandbox.base_dir", args.sandbox_dir)
    if args.docker_image:
        config.set("sandbox.docker_image", args.docker_image)

    setup_logging_from_config(config)
    logger = get_logger("main")

    host = config.get("server.host")
    port = config.get("server.port")
    logger.info(f"Starting JudgeArena server on {host}:{port}")
    logger.info(f"Configuration loaded from: {config.config_path}")
    logger.info(f"Sandbox directory: {config.get('sandbox.base_dir')}, image: {config.get('sandbox.docker_image')}")

    from .api.app import create_app

    try:
        app = create_app(config)
        socketio = app.extensions["socketio"]
        socketio.run(app, host=host, port=port, debug=args.debug, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        logger.info("Shutting down JudgeArena server...")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error starting server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
