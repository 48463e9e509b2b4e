"""Command base class and the registry the CLI builds its subcommands from."""

import argparse
from abc import ABC, abstractmethod

from portfolio_tracker.config import AppConfig
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.db import Database
from portfolio_tracker.models import AppState
from portfolio_tracker.services.portfolio_service import PortfolioService


class Command(ABC):
    """A CLI subcommand working on the stored portfolios."""

    name: str
    help: str

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        self.config: AppConfig = config
        self.db: Database = db
        self.container: ServiceContainer = container

    @property
    def portfolio_service(self) -> PortfolioService:
        return self.container.get_service(PortfolioService)

    def load_state(self) -> AppState:
        """Both source portfolios as stored, with the consolidated view rebuilt."""
        return self.portfolio_service.load_state()

    @classmethod
    @abstractmethod
    def setup_parser(cls, subparser) -> None:
        """Add this command's subparser and arguments."""
        pass

    @abstractmethod
    def execute(self, args: argparse.Namespace) -> int:
        """
        Run the command.

        Returns:
            Process exit code, 1 when the command failed
        """
        pass


class CommandRegistry:
    """Commands by name, filled in as the command modules are imported."""

    _commands: dict[str, type[Command]] = {}

    @classmethod
    def register(cls, command_class: type[Command]) -> type[Command]:
        cls._commands[command_class.name] = command_class
        return command_class

    @classmethod
    def get_commands(cls) -> dict[str, type[Command]]:
        return cls._commands.copy()
