import pytest

from portfolio_tracker.display import display_holdings, display_portfolio
from portfolio_tracker.models import Portfolio, PriceInfo
from portfolio_tracker.services.mutation import apply_price_refresh


@pytest.fixture
def portfolio(make_holding, make_portfolio) -> Portfolio:
    return make_portfolio(
        [
            make_holding("AAA", qty=10, avg_buy_price=10, ltp=10),
            make_holding("BBB", qty=1, avg_buy_price=100, ltp=300),
            make_holding("CCC", qty=4, avg_buy_price=50, ltp=40),
        ]
    )


def holding_rows(out: str) -> list[str]:
    return [line for line in out.splitlines() if line.startswith("║ ") and "Ticker" not in line]


class TestDisplayHoldings:
    """Tests for the holdings table."""

    def test_day_change_column(self, portfolio: Portfolio, capsys):
        """The latest day change of each holding is shown next to its LTP."""
        refreshed = apply_price_refresh(
            portfolio,
            {"AAA": PriceInfo(price=11.0, change_percent=7.77), "CCC": PriceInfo(40.0, -2.5)},
        )

        display_holdings(refreshed)
        out: str = capsys.readouterr().out

        assert "Chg %" in out
        aaa = next(row for row in holding_rows(out) if row.startswith("║ AAA"))
        ccc = next(row for row in holding_rows(out) if row.startswith("║ CCC"))
        assert "+7.77%" in aaa
        assert "-2.50%" in ccc

    def test_table_lines_line_up(self, portfolio: Portfolio, capsys):
        display_holdings(portfolio)
        out: str = capsys.readouterr().out

        table = [line for line in out.splitlines() if line[:1] in ("╔", "║", "╠", "╚")]
        assert len(table) == 7
        assert len({len(line) for line in table}) == 1

    @pytest.mark.parametrize(
        "sort_by, expected",
        [
            ("allocation", ["BBB", "CCC", "AAA"]),
            ("pnl", ["BBB", "AAA", "CCC"]),
            ("value", ["BBB", "CCC", "AAA"]),
            ("ticker", ["AAA", "BBB", "CCC"]),
        ],
    )
    def test_sort_order(self, portfolio: Portfolio, capsys, sort_by: str, expected: list[str]):
        display_holdings(portfolio, sort_by)

        tickers: list[str] = [row.split()[1] for row in holding_rows(capsys.readouterr().out)]
        assert tickers == expected

    def test_unknown_sort_field(self, portfolio: Portfolio):
        with pytest.raises(ValueError, match="Cannot sort holdings by 'name'"):
            display_holdings(portfolio, "name")

    def test_no_holdings(self, make_portfolio, capsys):
        display_holdings(make_portfolio([]))
        assert "No holdings to display." in capsys.readouterr().out


def test_display_portfolio_without_data(capsys):
    display_portfolio(None)
    assert "Upload a trade file first" in capsys.readouterr().out


def test_display_portfolio_section(portfolio: Portfolio, capsys):
    """Only the requested section is printed, with holdings in the requested order."""
    display_portfolio(portfolio, "holdings", sort_by="ticker")
    out: str = capsys.readouterr().out

    assert "TEST PORTFOLIO" not in out
    assert "No recent transactions." not in out
    assert [row.split()[1] for row in holding_rows(out)] == ["AAA", "BBB", "CCC"]
