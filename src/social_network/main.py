"""Command-line entry point for the social network server."""

import argparse
import logging
import threading
from collections.abc import Sequence

import uvicorn

from social_network.api.app import create_app
from social_network.app_logging import configure_logging
from social_network.config import Settings
from social_network.containers import AppContainer, build_container
from social_network.server.acceptor import SocialNetworkServer

_logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="social-network-server",
        description="Line-protocol social network server",
    )
    parser.add_argument("--host", help="bind address for client sessions")
    parser.add_argument("--port", type=int, help="listen port for client sessions")
    parser.add_argument(
        "--max-connections", type=int, help="maximum concurrent sessions"
    )
    parser.add_argument(
        "--download-access",
        choices=["grant", "follow"],
        help="download authorization regime",
    )
    parser.add_argument(
        "--photo-dir", help="store photos on disk under this directory"
    )
    parser.add_argument(
        "--admin-port", type=int, help="serve the admin API on this port"
    )
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Overlay command-line options on environment settings."""
    overrides = {
        "server_host": args.host,
        "server_port": args.port,
        "max_connections": args.max_connections,
        "download_access": args.download_access,
        "photo_storage_dir": args.photo_dir,
        "admin_port": args.admin_port,
    }
    present = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**present)


def start_admin_api(container: AppContainer) -> threading.Thread | None:
    """Serve the admin API with uvicorn on a daemon thread when configured."""
    port = container.settings.admin_port
    if port is None:
        return None
    config = uvicorn.Config(
        create_app(container),
        host=container.settings.server_host,
        port=port,
        log_level="info",
    )
    thread = threading.Thread(
        target=uvicorn.Server(config).run, name="admin-api", daemon=True
    )
    thread.start()
    _logger.info("Admin API listening on port %d", port)
    return thread


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging()
    args = parse_args(argv)
    container = build_container(settings_from_args(args))
    start_admin_api(container)
    server = SocialNetworkServer(container)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        _logger.info("Interrupted, shutting down")
    finally:
        server.shutdown(wait=False)


if __name__ == "__main__":
    main()
