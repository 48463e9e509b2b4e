import csv
import logging
import os
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any, Callable
from unittest.mock import patch

import pytest
import yaml

from portfolio_tracker.config import ENV_VARIABLE, AppConfig, ConfigLoader
from portfolio_tracker.db import Database
from portfolio_tracker.models import (
    Activity,
    CashPosition,
    Holding,
    Portfolio,
    PriceInfo,
    TradeRecord,
)
from portfolio_tracker.services.aggregation import summarise
from portfolio_tracker.services.valuation import derive_holding, reallocate, sort_by_allocation

CONFIG_DIR: Path = Path(__file__).parent.parent / "config"

TRADE_HEADER: list[str] = [
    "Date",
    "Time",
    "Name",
    "Ticker",
    "Activity",
    "Order Type",
    "Quantity",
    "Price per share",
    "Cash Amount",
    "Commission Charges",
]


@pytest.fixture(scope="session", autouse=True)
def ensure_test_environment():
    """Ensure we're using the test environment for all tests."""
    original_env = os.environ.get(ENV_VARIABLE)
    os.environ[ENV_VARIABLE] = "test"

    yield

    if original_env is not None:
        os.environ[ENV_VARIABLE] = original_env
    else:
        _ = os.environ.pop(ENV_VARIABLE, None)


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """
    Load the AppConfig through the normal ConfigLoader mechanism using
    the actual config files, with file outputs redirected to tmp_path.
    """
    return ConfigLoader.load_app_config(
        env="test",
        overrides={
            "log_file_path": str(tmp_path / "logs" / "test.log"),
            "price_cache_path": str(tmp_path / "yfinance.cache"),
        },
        config_dir=CONFIG_DIR,
    )


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    with Database(":memory:") as db:
        db.create_tables_if_not_exists()
        yield db


@pytest.fixture
def isolated_config_environment(tmp_path: Path):
    """
    Create a completely isolated test environment with copied config files.
    Use this when you need to modify config files for specific tests.
    Yields dict[str, Path]: "config_dir": test_config_dir, "temp_dir": tmp_path
    """
    test_config_dir: Path = tmp_path / "config"
    test_config_dir.mkdir()

    for config_file in CONFIG_DIR.glob("*.yaml"):
        with open(config_file, "r") as src_file:
            content: dict[str, Any] = yaml.safe_load(src_file) or {}

        # Keep anything the tests write inside the temp directory
        if "db_path" in content and content["db_path"] != ":memory:":
            content["db_path"] = str(tmp_path / "test.db")
        if "log_file_path" in content:
            content["log_file_path"] = str(tmp_path / "logs/test.log")

        with open(test_config_dir / config_file.name, "w") as dest_file:
            yaml.dump(content, dest_file)

    with patch(
        "portfolio_tracker.config.ConfigLoader._find_config_directory",
        return_value=test_config_dir,
    ):
        yield {"config_dir": test_config_dir, "temp_dir": tmp_path}


@pytest.fixture
def make_trade() -> Callable[..., TradeRecord]:
    """Factory for trade records with sensible defaults."""

    def _make_trade(
        ticker: str = "AAPL",
        activity: Activity = Activity.BUY,
        quantity: float = 10.0,
        price: float = 100.0,
        trade_date: date = date(2024, 1, 15),
        commission: float = 0.0,
        name: str | None = None,
        time: str = "10:00:00",
    ) -> TradeRecord:
        return TradeRecord(
            date=trade_date,
            time=time,
            name=name if name is not None else f"{ticker} Inc",
            ticker=ticker,
            activity=activity,
            order_type="Market",
            quantity=quantity,
            price_per_share=price,
            cash_amount=quantity * price,
            commission_charges=commission,
        )

    return _make_trade


@pytest.fixture
def make_holding() -> Callable[..., Holding]:
    """Factory for a holding with derived values filled in."""

    def _make_holding(
        ticker: str = "AAPL",
        qty: float = 10.0,
        avg_buy_price: float = 100.0,
        ltp: float = 110.0,
        has_price_fetched: bool = True,
        manually_edited: bool = False,
    ) -> Holding:
        return derive_holding(
            Holding(
                ticker=ticker,
                name=f"{ticker} Inc",
                qty=qty,
                avg_buy_price=avg_buy_price,
                ltp=ltp,
                buy_value=qty * avg_buy_price,
                present_value=0.0,
                pnl_percent=0.0,
                has_price_fetched=has_price_fetched,
                manually_edited=manually_edited,
            )
        )

    return _make_holding


@pytest.fixture
def make_portfolio() -> Callable[..., Portfolio]:
    """Factory for a consistent portfolio (allocation and summary derived from holdings)."""

    def _make_portfolio(
        holdings: Iterable[Holding] = (),
        portfolio_id: str = "portfolio1",
        name: str = "Test Portfolio",
        realised_pnl: float = 0.0,
        cash: float = 0.0,
        transactions: list | None = None,
    ) -> Portfolio:
        allocated: list[Holding] = sort_by_allocation(reallocate(holdings))
        return Portfolio(
            id=portfolio_id,
            name=name,
            summary=summarise(allocated, realised_pnl),
            cash_position=CashPosition(cash_position=cash),
            holdings=allocated,
            transactions=transactions or [],
        )

    return _make_portfolio


class StaticPriceSource:
    """Price source backed by a fixed mapping; records every request."""

    def __init__(self, prices: Mapping[str, PriceInfo] | None = None):
        self.prices: dict[str, PriceInfo] = dict(prices or {})
        self.requests: list[list[str]] = []

    def fetch_prices(self, tickers, on_progress=None) -> dict[str, PriceInfo]:
        requested: list[str] = list(tickers)
        self.requests.append(requested)
        found = {t: self.prices[t] for t in requested if t in self.prices}
        if on_progress is not None:
            on_progress(len(requested), len(requested))
        return found


@pytest.fixture
def price_source() -> StaticPriceSource:
    return StaticPriceSource(
        {
            "AAPL": PriceInfo(price=150.0, change_percent=1.5),
            "MSFT": PriceInfo(price=300.0, change_percent=-0.5),
        }
    )


@pytest.fixture
def write_trades_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write trade rows (under the standard header) to a CSV file and return its path."""

    def _write(rows: list[list[Any]], filename: str = "trades.csv") -> Path:
        path: Path = tmp_path / filename
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(TRADE_HEADER)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any dictConfig applied by a test so caplog keeps seeing package records."""
    root: logging.Logger = logging.getLogger()
    root_handlers: list[logging.Handler] = root.handlers[:]
    root_level: int = root.level

    yield

    for name in ("portfolio_tracker", "yfinance"):
        configured: logging.Logger = logging.getLogger(name)
        for handler in configured.handlers[:]:
            configured.removeHandler(handler)
            handler.close()
        configured.setLevel(logging.NOTSET)
        configured.propagate = True

    for handler in root.handlers[:]:
        if handler not in root_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(root_level)
