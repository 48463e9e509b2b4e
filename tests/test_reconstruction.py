import itertools
import random
from datetime import date

import pytest

from portfolio_tracker.models import Activity, PositionAccumulator, TransactionType
from portfolio_tracker.services.reconstruction import (
    calculate_realised_pnl,
    extract_recent_transactions,
    open_positions,
    reconstruct_positions,
)


class TestReconstructPositions:
    """Tests for folding trades into weighted-average-cost positions."""

    def test_buy_then_partial_sell(self, make_trade):
        """Buy 100 @ 10 (fee 1), sell 40 @ 15: cost basis leaves at the average cost."""
        trades = [
            make_trade("X", Activity.BUY, 100, 10.0, date(2024, 1, 1), commission=1.0),
            make_trade("X", Activity.SELL, 40, 15.0, date(2024, 2, 1), commission=1.0),
        ]

        position: PositionAccumulator = reconstruct_positions(trades)["X"]

        assert position.total_qty == pytest.approx(60)
        assert position.total_cost == pytest.approx(600.6)
        assert position.total_cost / position.total_qty == pytest.approx(10.01)

    def test_buys_accumulate_commission_into_cost(self, make_trade):
        """Every buy adds quantity * price + commission to the cost."""
        trades = [
            make_trade("AAPL", Activity.BUY, 10, 100.0, date(2024, 1, 1), commission=5.0),
            make_trade("AAPL", Activity.BUY, 10, 120.0, date(2024, 1, 2), commission=5.0),
        ]

        position: PositionAccumulator = reconstruct_positions(trades)["AAPL"]

        assert position.total_qty == 20
        assert position.total_cost == pytest.approx(2210.0)

    def test_input_order_does_not_matter(self, make_trade):
        """Any permutation of the input gives the same final positions."""
        trades = [
            make_trade("X", Activity.BUY, 100, 10.0, date(2024, 1, 1), commission=1.0),
            make_trade("X", Activity.BUY, 50, 12.0, date(2024, 1, 10)),
            make_trade("X", Activity.SELL, 30, 15.0, date(2024, 2, 1), commission=1.0),
            make_trade("X", Activity.SELL, 20, 9.0, date(2024, 3, 1)),
        ]
        expected: PositionAccumulator = reconstruct_positions(trades)["X"]

        for permutation in itertools.permutations(trades):
            position: PositionAccumulator = reconstruct_positions(list(permutation))["X"]
            assert position.total_qty == pytest.approx(expected.total_qty)
            assert position.total_cost == pytest.approx(expected.total_cost)

    def test_same_day_trades_keep_input_order(self, make_trade):
        """Trades on the same date are applied in the order they appear."""
        buy = make_trade("X", Activity.BUY, 10, 10.0, date(2024, 1, 1))
        sell = make_trade("X", Activity.SELL, 10, 12.0, date(2024, 1, 1))

        # Sell first on the same day: nothing to sell from, the position goes negative
        positions = reconstruct_positions([sell, buy])

        assert positions["X"].total_qty == pytest.approx(0)
        assert positions["X"].total_cost == pytest.approx(100.0)

    def test_name_comes_from_latest_trade(self, make_trade):
        """The most recent non-empty name wins."""
        trades = [
            make_trade("X", trade_date=date(2024, 1, 1), name="Old Name"),
            make_trade("X", trade_date=date(2024, 2, 1), name="New Name"),
            make_trade("X", trade_date=date(2024, 3, 1), name=""),
        ]

        assert reconstruct_positions(trades)["X"].name == "New Name"

    def test_random_order_many_tickers(self, make_trade):
        """Shuffled histories over several tickers reconstruct identically."""
        rng = random.Random(42)
        trades = []
        for day in range(1, 28):
            ticker: str = rng.choice(["A", "B", "C"])
            trades.append(make_trade(ticker, Activity.BUY, rng.randint(1, 20), 10.0 + day, date(2024, 1, day)))
        expected = reconstruct_positions(trades)

        shuffled = trades[:]
        rng.shuffle(shuffled)
        result = reconstruct_positions(shuffled)

        assert result.keys() == expected.keys()
        for ticker in expected:
            assert result[ticker].total_qty == pytest.approx(expected[ticker].total_qty)
            assert result[ticker].total_cost == pytest.approx(expected[ticker].total_cost)


class TestOpenPositions:
    """Tests for excluding closed positions."""

    def test_closed_and_oversold_positions_excluded(self, make_trade):
        """Fully sold, float-residue and oversold positions are dropped."""
        trades = [
            make_trade("OPEN", Activity.BUY, 10, 10.0, date(2024, 1, 1)),
            make_trade("CLOSED", Activity.BUY, 0.3, 10.0, date(2024, 1, 1)),
            make_trade("CLOSED", Activity.SELL, 0.1, 10.0, date(2024, 1, 2)),
            make_trade("CLOSED", Activity.SELL, 0.2, 10.0, date(2024, 1, 3)),
            make_trade("OVERSOLD", Activity.BUY, 5, 10.0, date(2024, 1, 1)),
            make_trade("OVERSOLD", Activity.SELL, 8, 10.0, date(2024, 1, 2)),
        ]

        held = open_positions(reconstruct_positions(trades))

        assert list(held) == ["OPEN"]


class TestRealisedPnl:
    """Tests for realised profit/loss over the trade history."""

    def test_sell_commission_reduces_gain(self, make_trade):
        """Gain is proceeds net of sell commission minus average cost of the shares sold."""
        trades = [
            make_trade("X", Activity.BUY, 100, 10.0, date(2024, 1, 1), commission=1.0),
            make_trade("X", Activity.SELL, 40, 15.0, date(2024, 2, 1), commission=1.0),
        ]

        # (40 * 15 - 1) - 40 * 10
        assert calculate_realised_pnl(trades) == pytest.approx(199.0)

    def test_no_sells_means_no_realised_pnl(self, make_trade):
        """Buys alone never realise anything."""
        trades = [make_trade("X", Activity.BUY, 10, 10.0), make_trade("Y", Activity.BUY, 5, 20.0)]

        assert calculate_realised_pnl(trades) == 0.0

    def test_loss_across_tickers(self, make_trade):
        """Realised results from different tickers are summed."""
        trades = [
            make_trade("X", Activity.BUY, 10, 10.0, date(2024, 1, 1)),
            make_trade("X", Activity.BUY, 10, 20.0, date(2024, 1, 2)),
            make_trade("X", Activity.SELL, 10, 12.0, date(2024, 1, 3)),
            make_trade("Y", Activity.BUY, 2, 50.0, date(2024, 1, 1)),
            make_trade("Y", Activity.SELL, 2, 60.0, date(2024, 1, 5)),
        ]

        # X: 10 * (12 - 15) = -30, Y: 2 * (60 - 50) = 20
        assert calculate_realised_pnl(trades) == pytest.approx(-10.0)


class TestRecentTransactions:
    """Tests for the recent transactions list."""

    def test_newest_first_limited(self, make_trade):
        """Transactions are ordered newest first and truncated to the limit."""
        trades = [
            make_trade("X", Activity.BUY, 1, 10.0, date(2024, 1, day)) for day in range(1, 16)
        ]

        transactions = extract_recent_transactions(trades, limit=10)

        assert len(transactions) == 10
        assert transactions[0].date == date(2024, 1, 15)
        assert transactions[-1].date == date(2024, 1, 6)
        assert transactions[0].id == "X-2024-01-15-0"
        assert transactions[3].id == "X-2024-01-12-3"

    def test_same_day_ordered_by_time(self, make_trade):
        """Trades on the same day are ordered by time of day, latest first."""
        morning = make_trade("AM", trade_date=date(2024, 1, 1), time="09:00:00")
        afternoon = make_trade("PM", Activity.SELL, trade_date=date(2024, 1, 1), time="15:30:00")

        transactions = extract_recent_transactions([morning, afternoon])

        assert [t.ticker for t in transactions] == ["PM", "AM"]
        assert transactions[0].type == TransactionType.SELL
        assert transactions[1].type == TransactionType.BUY
        assert transactions[0].shares == 10.0
        assert transactions[0].price == 100.0
