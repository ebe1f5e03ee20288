"""
Dependency Injection container for Notaire.

Manages lifecycle and dependencies of all application components.
"""

import logging
from typing import Optional

from shared.reporter import SystemReporter

from notaire.application.listener import (
    ConnectionManager,
    EscrowReconciliationListener,
)
from notaire.application.registry import PendingEscrowRegistry
from notaire.config.settings import NotaireConfig
from notaire.domain.repositories import IEscrowRegistryStore
from notaire.domain.services import ILedgerConnector, IScheduler
from notaire.infrastructure.blockchain import Web3Connector
from notaire.infrastructure.monitoring.graceful_shutdown import (
    NotaireGracefulShutdown,
)
from notaire.infrastructure.monitoring.notaire_health_checker import (
    NotaireHealthChecker,
)
from notaire.infrastructure.persistence import JsonFileEscrowStore
from notaire.infrastructure.scheduling import AsyncioScheduler


class Container:
    """
    Dependency Injection container.

    Creates and manages all application dependencies.
    Every collaborator is a lazy singleton; tests pass their own
    connector, store or scheduler in instead of the production ones.
    """

    def __init__(
        self,
        settings: NotaireConfig,
        reporter: Optional[SystemReporter] = None,
        connector: Optional[ILedgerConnector] = None,
        store: Optional[IEscrowRegistryStore] = None,
        scheduler: Optional[IScheduler] = None,
    ):
        """
        Initialize container with settings.

        Args:
            settings: Application settings
            reporter: Logger override
            connector: Ledger connector override
            store: Registry store override
            scheduler: Scheduler override
        """
        self.settings = settings

        self._reporter = reporter
        self._connector = connector
        self._store = store
        self._scheduler = scheduler

        self._registry: Optional[PendingEscrowRegistry] = None
        self._connection_manager: Optional[ConnectionManager] = None
        self._listener: Optional[EscrowReconciliationListener] = None
        self._health_checker: Optional[NotaireHealthChecker] = None
        self._shutdown: Optional[NotaireGracefulShutdown] = None

    @property
    def reporter(self) -> SystemReporter:
        if self._reporter is None:
            self._reporter = SystemReporter(
                name="notaire",
                log_dir=self.settings.log_dir,
                level=getattr(logging, self.settings.log_level.upper()),
                verbose=self.settings.verbose,
            )
        return self._reporter

    @property
    def store(self) -> IEscrowRegistryStore:
        if self._store is None:
            self._store = JsonFileEscrowStore(self.settings.registry.path)
        return self._store

    @property
    def scheduler(self) -> IScheduler:
        if self._scheduler is None:
            self._scheduler = AsyncioScheduler()
        return self._scheduler

    @property
    def connector(self) -> ILedgerConnector:
        if self._connector is None:
            self._connector = Web3Connector(self.settings, self.reporter)
        return self._connector

    @property
    def registry(self) -> PendingEscrowRegistry:
        if self._registry is None:
            self._registry = PendingEscrowRegistry(self.store, self.reporter)
        return self._registry

    @property
    def connection_manager(self) -> ConnectionManager:
        if self._connection_manager is None:
            self._connection_manager = ConnectionManager(
                connector=self.connector,
                event_name=self.settings.listener.event_name,
                reporter=self.reporter,
            )
        return self._connection_manager

    @property
    def listener(self) -> EscrowReconciliationListener:
        """
        Get EscrowReconciliationListener singleton.

        Returns:
            Listener wired to the registry, connection and scheduler
        """
        if self._listener is None:
            self._listener = EscrowReconciliationListener(
                connection=self.connection_manager,
                registry=self.registry,
                scheduler=self.scheduler,
                config=self.settings.listener,
                reporter=self.reporter,
            )
        return self._listener

    @property
    def health_checker(self) -> NotaireHealthChecker:
        if self._health_checker is None:
            self._health_checker = NotaireHealthChecker(self.listener)
        return self._health_checker

    @property
    def shutdown(self) -> NotaireGracefulShutdown:
        """
        Get shutdown coordinator with the listener cleanup registered.
        """
        if self._shutdown is None:
            self._shutdown = NotaireGracefulShutdown()
            self._shutdown.register_cleanup(self.listener.close)
        return self._shutdown
