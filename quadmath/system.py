"""
System integration for quadmath.

This module ties together configuration, the response store, the quad
manager and the HTTP server.
"""

import logging
import threading
import signal
from typing import Any, Optional
import atexit

from quadmath.components.config import Config, ConfigManager
from quadmath.components.server import Server, ServerManager
from quadmath.database import InMemoryResponseStore, PostgresConfig, PostgresManager, ResponseStore, SqlResponseStore
from quadmath.quad import QuadManager

# Set up logging
logger = logging.getLogger(__name__)


class System:
    """
    Main system for quadmath.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the system.

        Args:
            config: Configuration for the system
        """
        self.config = config or ConfigManager.get_config()

        self.store: Optional[ResponseStore] = None
        self.quad_manager: Optional[QuadManager] = None
        self.server: Optional[Server] = None

        self._running = False
        self._stop_event = threading.Event()

    def _create_store(self) -> ResponseStore:
        url = self.config.get('database.url')
        if not url:
            logger.info("No database configured, using in-memory response store")
            return InMemoryResponseStore()

        db_config = PostgresConfig(
            url=url,
            pool_size=self.config.get('database.pool-size'),
            max_overflow=self.config.get('database.max-overflow')
        )
        return SqlResponseStore(PostgresManager.get_client(db_config))

    def initialize(self) -> None:
        """
        Initialize the system.
        """
        if self._running:
            return

        logger.info("Initializing system")

        self.store = self._create_store()

        self.quad_manager = QuadManager(
            data_dir=self.config.get('quads.data-dir'),
            store=self.store,
            analytics=self.config.get('analytics'),
            max_players=self.config.get('quads.max-players')
        )

        self.server = ServerManager.get_server(self.quad_manager, self.config)

        logger.info("System initialized")

    def start(self) -> None:
        """
        Start the system.
        """
        if self._running:
            return

        self.initialize()

        logger.info("Starting system")

        self._stop_event.clear()
        self.server.start()
        self._running = True

        self._register_shutdown_handlers()

        logger.info("System started")

    def stop(self) -> None:
        """
        Stop the system.
        """
        if not self._running:
            return

        logger.info("Stopping system")

        self._stop_event.set()

        if self.server:
            self.server.stop()

        if isinstance(self.store, SqlResponseStore):
            PostgresManager.shutdown()
        self.store = None

        self._running = False

        logger.info("System stopped")

    def _register_shutdown_handlers(self) -> None:
        """
        Register shutdown handlers.
        """
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._signal_handler)

        atexit.register(self.stop)

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """
        Handle signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        logger.info(f"Received signal {signum}")
        self.stop()

    def wait_for_shutdown(self) -> None:
        """
        Wait for system shutdown.
        """
        self._stop_event.wait()


class SystemManager:
    """
    Singleton manager for the system.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_system(cls, config: Optional[Config] = None) -> System:
        """
        Get the system instance.

        Args:
            config: Configuration for the system

        Returns:
            System instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = System(config)

            return cls._instance

    @classmethod
    def start(cls, config: Optional[Config] = None) -> System:
        """
        Start the system.

        Args:
            config: Configuration for the system

        Returns:
            System instance
        """
        system = cls.get_system(config)
        system.start()
        return system

    @classmethod
    def stop(cls) -> None:
        """
        Stop the system.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.stop()
                cls._instance = None
