"""
Main entry point for radiocalico.

Initializes all components and starts the server.
"""

import logging
import os

import uvicorn

from .archive import ArchiveManager
from .catalog import CatalogManager
from .config_manager import ConfigManager
from .database import Database
from .metadata import MetadataClient
from .poller import MetadataPoller
from .ratings import RatingManager
from .web.server import create_app

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


class RadioCalicoServer:
    """Main server class that orchestrates all components."""

    def __init__(self, db_path=None, poll=True):
        """
        Initialize all components.

        Args:
            db_path: SQLite file (defaults to RADIOCALICO_DB_PATH or ~/.radiocalico)
            poll: Run the server-side metadata poller
        """
        logger.info("Initializing radiocalico server...")

        self.database = Database(db_path)
        self.config_manager = ConfigManager(self.database)
        self.catalog_manager = CatalogManager(self.database)
        self.rating_manager = RatingManager(self.database)

        self.metadata_client = MetadataClient(
            url=self.config_manager.get("metadata_url"),
            timeout=self.config_manager.get_float("request_timeout_seconds", 5.0),
        )
        self.archive_manager = ArchiveManager(
            self.catalog_manager,
            show_title=self.config_manager.get("archive_show_title"),
            host_name=self.config_manager.get("archive_host_name"),
        )

        self.poller = None
        if poll:
            archiver = None
            if self.config_manager.get_bool("archive_enabled", True):
                archiver = self.archive_manager.archive_snapshot
            self.poller = MetadataPoller(
                self.metadata_client,
                interval_seconds=self.config_manager.get_float("poll_interval_seconds", 10.0),
                archiver=archiver,
            )

        self.web_app = create_app(
            self.catalog_manager,
            self.rating_manager,
            self.config_manager,
            self.metadata_client,
            self.archive_manager,
            poller=self.poller,
        )

        self.uvicorn_server = None
        logger.info("radiocalico server initialized")

    def run(self, host="0.0.0.0", port=3000):
        """Start the poller and serve HTTP until interrupted."""
        logger.info("Starting radiocalico server...")

        if self.poller:
            self.poller.start()

        logger.info("=" * 60)
        logger.info("%s is running!", self.config_manager.get("station_name"))
        logger.info("Web UI: http://%s:%s", host, port)
        logger.info("=" * 60)

        config = uvicorn.Config(self.web_app, host=host, port=port, log_level="info")
        self.uvicorn_server = uvicorn.Server(config)
        self.uvicorn_server.run()

    def stop(self):
        """Stop all components."""
        logger.info("Stopping radiocalico server...")

        if self.uvicorn_server:
            self.uvicorn_server.should_exit = True

        if self.poller:
            self.poller.stop()

        self.metadata_client.close()
        self.database.close()

        logger.info("radiocalico server stopped")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="radiocalico - internet radio companion server")
    parser.add_argument("--host", default=os.environ.get("RADIOCALICO_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3000")))
    parser.add_argument("--db", default=None, help="SQLite database path")
    parser.add_argument("--no-poll", action="store_true", help="Disable the server-side metadata poller")
    args = parser.parse_args()

    server = RadioCalicoServer(db_path=args.db, poll=not args.no_poll)
    try:
        server.run(host=args.host, port=args.port)
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()


if __name__ == "__main__":
    main()
