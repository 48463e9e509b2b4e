import logging
import random
import time
from pathlib import Path

import yfinance as yf

from portfolio_tracker.models import PriceInfo

logger: logging.Logger = logging.getLogger(__name__)


def configure_cache(cache_path: Path) -> None:
    """Point yfinance's on-disk cache at the configured location."""
    try:
        cache_path.mkdir(parents=True, exist_ok=True)
        yf.set_tz_cache_location(str(cache_path))
        logger.debug(f"yfinance cache location set to {cache_path}")
    except OSError as e:
        logger.warning(f"Could not use yfinance cache at {cache_path}: {e}")


def _backoff(retry_count: int, cap: int) -> float:
    """Exponential backoff with jitter."""
    return min(cap, (2**retry_count) + (random.randint(0, 1000) / 1000))


def get_quote(symbol: str, max_retries: int = 2) -> PriceInfo | None:
    """
    Fetch the last traded price and day change for one symbol.

    Args:
        symbol: Yahoo Finance symbol (e.g. "AAPL", "CBA.AX")
        max_retries: Maximum number of retries on rate limiting or empty data

    Returns:
        PriceInfo, or None if no valid price could be obtained
    """
    retry_count = 0

    while retry_count <= max_retries:
        try:
            ticker: yf.Ticker = yf.Ticker(symbol)
            price: float | None = ticker.fast_info.last_price

            if price is not None and price > 0:
                previous_close: float | None = ticker.fast_info.previous_close
                if not previous_close or previous_close <= 0:
                    previous_close = price
                change_percent: float = (price - previous_close) / previous_close * 100
                logger.debug(f"{symbol}: price={price:.2f} change={change_percent:+.2f}%")
                return PriceInfo(price=float(price), change_percent=float(change_percent))

            retry_count += 1
            if retry_count > max_retries:
                break
            wait_time: float = _backoff(retry_count, 60)
            logger.warning(f"No price for {symbol}, retrying in {wait_time:.2f} seconds")
            time.sleep(wait_time)

        except Exception as e:
            error_message: str = str(e).lower()

            if "no data found" in error_message or "404" in error_message:
                logger.warning(f"Invalid ticker {symbol}: {e}")
                return None

            if "rate limit" in error_message or "too many requests" in error_message:
                retry_count += 1
                if retry_count > max_retries:
                    logger.error(f"Rate limit exceeded for {symbol}")
                    return None
                wait_time = _backoff(retry_count, 120)
                logger.warning(f"Rate limited. Waiting {wait_time:.2f}s before retry")
                time.sleep(wait_time)
            else:
                logger.error(f"Error fetching price for {symbol}: {e}")
                return None

    logger.warning(f"Could not fetch price for {symbol}")
    return None
