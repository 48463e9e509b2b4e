class PortfolioTrackerError(Exception):
    """Base class for errors raised by the portfolio tracker."""


class TradeFileError(PortfolioTrackerError):
    """The trade spreadsheet could not be read or contains no valid trades."""


class DuplicateHoldingError(PortfolioTrackerError):
    """A manually added holding uses a ticker the portfolio already holds."""

    def __init__(self, ticker: str, portfolio_id: str):
        self.ticker: str = ticker
        self.portfolio_id: str = portfolio_id
        super().__init__(f"Ticker {ticker} already exists in {portfolio_id}")


class InvalidTargetError(PortfolioTrackerError):
    """An event was aimed at a portfolio identifier that cannot accept it."""


class PriceRefreshError(PortfolioTrackerError):
    """A price refresh could not resolve any price, so nothing was revalued."""
