from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from portfolio_tracker import yfinance_api
from portfolio_tracker.models import PriceInfo
from portfolio_tracker.services.price_service import PriceService

QUOTES: dict[str, tuple[float | None, float | None]] = {
    "AAPL": (150.0, 120.0),
    "MSFT": (300.0, 300.0),
    "CBA.AX": (110.0, None),
    "DEAD": (None, None),
}


def fake_ticker(symbol: str) -> SimpleNamespace:
    last_price, previous_close = QUOTES.get(symbol, (None, None))
    return SimpleNamespace(
        fast_info=SimpleNamespace(last_price=last_price, previous_close=previous_close)
    )


@pytest.fixture
def mock_ticker(mocker: MockerFixture) -> MagicMock:
    return mocker.patch("portfolio_tracker.yfinance_api.yf.Ticker", side_effect=fake_ticker)


@pytest.fixture
def mock_sleep(mocker: MockerFixture) -> MagicMock:
    return mocker.patch("portfolio_tracker.yfinance_api.time.sleep")


class TestGetQuote:
    """Tests for single-symbol price lookups."""

    def test_price_and_change(self, mock_ticker: MagicMock, mock_sleep: MagicMock):
        """Change percent is measured against the previous close."""
        assert yfinance_api.get_quote("AAPL") == PriceInfo(price=150.0, change_percent=25.0)
        mock_sleep.assert_not_called()

    def test_missing_previous_close(self, mock_ticker: MagicMock, mock_sleep: MagicMock):
        """Without a previous close the change is 0."""
        assert yfinance_api.get_quote("CBA.AX") == PriceInfo(price=110.0, change_percent=0.0)

    def test_empty_price_retries_then_gives_up(
        self, mock_ticker: MagicMock, mock_sleep: MagicMock
    ):
        """An empty price is retried with backoff and finally reported as missing."""
        assert yfinance_api.get_quote("DEAD", max_retries=2) is None
        assert mock_ticker.call_count == 3
        assert mock_sleep.call_count == 2

    def test_invalid_ticker_is_not_retried(self, mocker: MockerFixture, mock_sleep: MagicMock):
        """A 404 from Yahoo means the symbol does not exist."""
        ticker = mocker.patch(
            "portfolio_tracker.yfinance_api.yf.Ticker",
            side_effect=Exception("HTTP Error 404: Not Found"),
        )

        assert yfinance_api.get_quote("NOPE") is None
        assert ticker.call_count == 1
        mock_sleep.assert_not_called()

    def test_rate_limit_is_retried(self, mocker: MockerFixture, mock_sleep: MagicMock):
        """A rate-limit error waits and tries again."""
        _ = mocker.patch(
            "portfolio_tracker.yfinance_api.yf.Ticker",
            side_effect=[Exception("Too Many Requests. Rate limited."), fake_ticker("MSFT")],
        )

        assert yfinance_api.get_quote("MSFT") == PriceInfo(price=300.0, change_percent=0.0)
        assert mock_sleep.call_count == 1

    def test_rate_limit_exhausted(self, mocker: MockerFixture, mock_sleep: MagicMock, caplog):
        """Rate limiting beyond the retry budget yields no price."""
        _ = mocker.patch(
            "portfolio_tracker.yfinance_api.yf.Ticker",
            side_effect=Exception("rate limit"),
        )

        assert yfinance_api.get_quote("MSFT", max_retries=1) is None
        assert "Rate limit exceeded for MSFT" in caplog.text

    def test_unexpected_error(self, mocker: MockerFixture, mock_sleep: MagicMock):
        """Any other failure is logged and treated as a missing price."""
        _ = mocker.patch(
            "portfolio_tracker.yfinance_api.yf.Ticker", side_effect=RuntimeError("boom")
        )

        assert yfinance_api.get_quote("AAPL") is None


class TestConfigureCache:
    def test_sets_cache_location(self, mocker: MockerFixture, tmp_path: Path):
        set_location = mocker.patch("portfolio_tracker.yfinance_api.yf.set_tz_cache_location")
        cache_path: Path = tmp_path / "cache"

        yfinance_api.configure_cache(cache_path)

        assert cache_path.is_dir()
        set_location.assert_called_once_with(str(cache_path))


class TestPriceService:
    """Tests for batched price fetching."""

    def test_fetches_available_prices(self, mock_ticker: MagicMock, mock_sleep: MagicMock):
        """Tickers that resolve are returned; the rest are left out."""
        service = PriceService(batch_size=2, batch_delay=0, max_retries=0)

        prices: dict[str, PriceInfo] = service.fetch_prices(["AAPL", "MSFT", "DEAD"])

        assert set(prices) == {"AAPL", "MSFT"}
        assert prices["MSFT"].price == 300.0

    def test_cleans_and_deduplicates(self, mock_ticker: MagicMock, mock_sleep: MagicMock):
        """Each cleaned symbol is looked up once."""
        service = PriceService(batch_size=5, batch_delay=0, max_retries=0)

        prices = service.fetch_prices([" aapl ", "AAPL", "$aapl", "", "cba.ax"])

        assert set(prices) == {"AAPL", "CBA.AX"}
        assert sorted(call.args[0] for call in mock_ticker.call_args_list) == ["AAPL", "CBA.AX"]

    def test_progress_per_batch(self, mock_ticker: MagicMock, mock_sleep: MagicMock):
        """Progress is reported after every batch with a pause between batches."""
        service = PriceService(batch_size=2, batch_delay=0.5, max_retries=0)
        progress: list[tuple[int, int]] = []

        _ = service.fetch_prices(
            ["AAPL", "MSFT", "CBA.AX", "DEAD", "XYZ"],
            on_progress=lambda done, total: progress.append((done, total)),
        )

        assert progress == [(2, 5), (4, 5), (5, 5)]
        assert [call.args[0] for call in mock_sleep.call_args_list] == [0.5, 0.5]

    def test_no_tickers(self, mock_ticker: MagicMock):
        """Nothing to look up means no requests and no prices."""
        assert PriceService().fetch_prices([]) == {}
        mock_ticker.assert_not_called()
