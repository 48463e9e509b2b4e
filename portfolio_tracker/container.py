"""
Service container for dependency injection.

This module defines a container that manages the creation and lifecycle of
service objects, repository objects, and other application components.
"""

import logging
from typing import TypeVar, cast

from portfolio_tracker import yfinance_api
from portfolio_tracker.config import AppConfig
from portfolio_tracker.db import Database
from portfolio_tracker.repositories.portfolio_repository import PortfolioRepository
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.price_service import PriceService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """
    Container for application services and repositories.

    This class is responsible for creating and providing access to various
    application components, ensuring proper dependency injection and lifecycle
    management.
    """

    def __init__(self, config: AppConfig, db: Database):
        """
        Initialise the service container.

        Args:
            config: Application configuration
            db: Database connection
        """
        self.config = config
        self.db = db
        self._repositories: dict[type, object] = {}
        self._services: dict[type, object] = {}

        self._init_repositories()
        self._init_services()

    def _init_repositories(self) -> None:
        """Initialise all repositories."""
        self._repositories[PortfolioRepository] = PortfolioRepository(self.db)

    def _init_services(self) -> None:
        """Initialise all services."""
        yfinance_api.configure_cache(self.config.price_cache_path)
        price_service = PriceService(
            batch_size=self.config.price_batch_size,
            batch_delay=self.config.price_batch_delay_seconds,
            max_retries=self.config.price_max_retries,
        )
        self._services[PriceService] = price_service

        portfolio_repo: PortfolioRepository = self.get_repository(PortfolioRepository)
        self._services[PortfolioService] = PortfolioService(
            portfolio_repo, price_service, self.config.transaction_limit
        )

    def get_repository(self, repo_type: type[T]) -> T:
        """
        Get a repository instance by type.

        Raises:
            KeyError: If repository type is not registered
        """
        if repo_type not in self._repositories:
            raise KeyError(f"Repository {repo_type.__name__} not registered")

        return cast(T, self._repositories[repo_type])

    def get_service(self, service_type: type[T]) -> T:
        """
        Get a service instance by type.

        Raises:
            KeyError: If service type is not registered
        """
        if service_type not in self._services:
            raise KeyError(f"Service {service_type.__name__} not registered")

        return cast(T, self._services[service_type])
