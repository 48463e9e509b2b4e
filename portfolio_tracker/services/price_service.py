import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from portfolio_tracker import yfinance_api
from portfolio_tracker.models import PriceInfo
from portfolio_tracker.trade_parser import clean_ticker

logger: logging.Logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class PriceSource(Protocol):
    def fetch_prices(
        self, tickers: Iterable[str], on_progress: ProgressCallback | None = None
    ) -> dict[str, PriceInfo]: ...


class PriceService:
    """
    Best-effort live prices from Yahoo Finance.

    Tickers are looked up in batches of concurrent requests with a pause between
    batches. A ticker that cannot be priced is simply left out of the result.
    """

    def __init__(self, batch_size: int = 5, batch_delay: float = 0.1, max_retries: int = 2):
        self.batch_size: int = max(1, batch_size)
        self.batch_delay: float = batch_delay
        self.max_retries: int = max_retries

    def fetch_prices(
        self, tickers: Iterable[str], on_progress: ProgressCallback | None = None
    ) -> dict[str, PriceInfo]:
        """
        Fetch prices for the given tickers.

        Args:
            tickers: Ticker symbols; cleaned and de-duplicated before lookup
            on_progress: Called with (fetched, total) after each batch

        Returns:
            Dictionary mapping ticker to PriceInfo for every ticker that resolved
        """
        symbols: list[str] = list(dict.fromkeys(t for t in map(clean_ticker, tickers) if t))
        prices: dict[str, PriceInfo] = {}
        if not symbols:
            return prices

        total_batches: int = (len(symbols) - 1) // self.batch_size + 1
        logger.info(f"Fetching prices for {len(symbols)} tickers in {total_batches} batches")

        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for i in range(0, len(symbols), self.batch_size):
                batch: list[str] = symbols[i : i + self.batch_size]
                batch_num: int = i // self.batch_size + 1
                logger.debug(f"Processing batch {batch_num}/{total_batches} ({len(batch)} tickers)")

                results = executor.map(
                    lambda symbol: (symbol, yfinance_api.get_quote(symbol, self.max_retries)),
                    batch,
                )
                for symbol, price_info in results:
                    if price_info is not None:
                        prices[symbol] = price_info
                    else:
                        logger.warning(f"Could not fetch price for {symbol}")

                if on_progress is not None:
                    on_progress(min(i + len(batch), len(symbols)), len(symbols))

                if batch_num < total_batches and self.batch_delay > 0:
                    time.sleep(self.batch_delay)

        logger.info(f"Fetched {len(prices)} out of {len(symbols)} prices")
        return prices
