"""
Unit tests for PortfolioEngine.
Following TDD approach - order execution, price resolution, refresh
sequencing, metrics, history and reset.
"""

import asyncio
import json
import math
from unittest.mock import AsyncMock, Mock

import pytest

from fiscalwiser.core.enums import AmountType, OrderSide
from fiscalwiser.core.exceptions.portfolio import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidOrderError,
    PriceUnavailableError,
)
from fiscalwiser.core.interfaces.market import PriceSource
from fiscalwiser.core.models.asset import AssetMetadata, Quote
from fiscalwiser.core.models.config import EngineConfig
from fiscalwiser.core.models.order import Order
from fiscalwiser.core.models.portfolio_engine import PortfolioEngine
from fiscalwiser.infrastructure.market import StaticPriceSource
from fiscalwiser.infrastructure.storage import InMemoryStorage, PortfolioStore


class SlowPriceSource(StaticPriceSource):
    """Static prices that yield to the event loop before answering."""

    async def get_quote(self, asset_id: str) -> Quote | None:
        await asyncio.sleep(0.01)
        return await super().get_quote(asset_id)


class ScriptedPriceSource(PriceSource):
    """Each request waits until the test resolves its future."""

    def __init__(self) -> None:
        self.pending: list[asyncio.Future] = []

    async def get_quote(self, asset_id: str) -> Quote | None:
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


def make_engine(
    prices: dict | None = None,
    backend: InMemoryStorage | None = None,
    config: EngineConfig | None = None,
    source: PriceSource | None = None,
) -> PortfolioEngine:
    store = PortfolioStore(backend if backend is not None else InMemoryStorage())
    return PortfolioEngine(store, source or StaticPriceSource(prices), config)


async def wait_for_requests(source: ScriptedPriceSource, count: int) -> None:
    while len(source.pending) < count:
        await asyncio.sleep(0)


class TestPortfolioEngineScenario:
    """End-to-end trading scenario on a 10000 starting balance."""

    @pytest.mark.asyncio
    async def test_should_follow_buy_buy_sell_scenario(self) -> None:
        """Test cost basis, cash and realized PnL through a sequence of orders."""
        # Arrange
        source = StaticPriceSource({"bitcoin": 50.0})
        engine = make_engine(source=source)

        # Act - buy $1000 at 50
        first = await engine.execute(Order.buy("bitcoin", 1000.0))

        # Assert
        assert first.quantity == pytest.approx(20.0)
        assert engine.position("bitcoin").average_cost == pytest.approx(50.0)
        assert engine.portfolio.cash_balance == pytest.approx(9000.0)

        # Act - buy $500 at 100
        source.set_price("bitcoin", 100.0)
        await engine.execute(Order.buy("bitcoin", 500.0))

        # Assert
        assert engine.position("bitcoin").quantity == pytest.approx(25.0)
        assert engine.position("bitcoin").average_cost == pytest.approx(60.0)
        assert engine.portfolio.cash_balance == pytest.approx(8500.0)

        # Act - sell 10 units at 80
        source.set_price("bitcoin", 80.0)
        receipt = await engine.execute(Order.sell("bitcoin", 10.0))

        # Assert
        assert receipt.side == OrderSide.SELL
        assert receipt.realized_pnl == pytest.approx(200.0)
        assert receipt.amount == pytest.approx(800.0)
        assert engine.position("bitcoin").quantity == pytest.approx(15.0)
        assert engine.position("bitcoin").average_cost == pytest.approx(60.0)
        assert engine.portfolio.cash_balance == pytest.approx(9300.0)

        # Act - sell 20 while holding 15
        with pytest.raises(InsufficientHoldingsError):
            await engine.execute(Order.sell("bitcoin", 20.0))

        # Assert - unchanged
        assert engine.position("bitcoin").quantity == pytest.approx(15.0)
        assert engine.portfolio.cash_balance == pytest.approx(9300.0)

        # Act - reset
        engine.reset(5000.0)

        # Assert
        assert engine.portfolio.positions == {}
        assert engine.portfolio.cash_balance == 5000.0
        assert engine.portfolio.starting_balance == 5000.0


class TestPortfolioEngineBuys:
    """Test suite for buy orders."""

    @pytest.mark.asyncio
    async def test_should_buy_whole_units(self) -> None:
        """Test unit-denominated buys charge quantity * price."""
        engine = make_engine({"AAPL": 190.0})

        receipt = await engine.execute(Order.buy("AAPL", 3, AmountType.UNITS))

        assert receipt.quantity == 3
        assert receipt.amount == pytest.approx(570.0)
        assert engine.portfolio.cash_balance == pytest.approx(10000.0 - 570.0)

    @pytest.mark.asyncio
    async def test_should_reject_buy_exceeding_cash_without_changes(self) -> None:
        """Test InsufficientFundsError leaves portfolio and storage unchanged."""
        # Arrange
        backend = InMemoryStorage()
        engine = make_engine({"bitcoin": 50.0}, backend=backend)

        # Act
        with pytest.raises(InsufficientFundsError) as exc_info:
            await engine.execute(Order.buy("bitcoin", 10000.01))

        # Assert
        assert exc_info.value.available == 10000.0
        assert engine.portfolio.cash_balance == 10000.0
        assert engine.portfolio.positions == {}
        assert backend.get("portfolio") is None

    @pytest.mark.asyncio
    async def test_should_allow_spending_all_cash(self) -> None:
        """Test cash reaches exactly zero and never goes negative."""
        engine = make_engine({"bitcoin": 3.0})

        await engine.execute(Order.buy("bitcoin", 10000.0))

        assert engine.portfolio.cash_balance == 0.0
        assert engine.position("bitcoin").quantity == pytest.approx(10000.0 / 3.0)

    @pytest.mark.asyncio
    async def test_should_use_explicit_price_without_lookup(self) -> None:
        """Test an order price bypasses the price source."""
        source = StaticPriceSource()
        engine = make_engine(source=source)

        receipt = await engine.execute(Order.buy("AAPL", 2, AmountType.UNITS, price=150.0))

        assert receipt.unit_price == 150.0
        assert source.requests == []
        assert engine.position("AAPL").last_known_price == 150.0

    @pytest.mark.asyncio
    async def test_should_store_quote_metadata_on_position(self) -> None:
        """Test display metadata from the quote is kept."""
        source = StaticPriceSource()
        metadata = AssetMetadata(id="bitcoin", name="Bitcoin", symbol="BTC")
        source.set_price("bitcoin", 100.0, change_24h=2.0, metadata=metadata)
        engine = make_engine(source=source)

        await engine.execute(Order.buy("bitcoin", 100.0))

        assert engine.position("bitcoin").last_known_metadata == metadata

    @pytest.mark.asyncio
    async def test_should_persist_after_each_order(self) -> None:
        """Test the stored record follows the portfolio."""
        backend = InMemoryStorage()
        engine = make_engine({"bitcoin": 50.0}, backend=backend)

        await engine.execute(Order.buy("bitcoin", 1000.0))

        record = json.loads(backend.get("portfolio"))
        assert record["cashBalance"] == pytest.approx(9000.0)
        assert record["positions"]["bitcoin"]["quantity"] == pytest.approx(20.0)

    @pytest.mark.asyncio
    async def test_should_reject_buy_resolving_to_dust_quantity(self) -> None:
        """Test a buy at or below epsilon units is rejected before cash moves."""
        # Arrange
        backend = InMemoryStorage()
        engine = make_engine({"bitcoin": 50000.0}, backend=backend)

        # Act
        with pytest.raises(InvalidOrderError, match="below the minimum"):
            await engine.execute(Order.buy("bitcoin", 0.01))

        # Assert
        assert engine.portfolio.cash_balance == 10000.0
        assert engine.position("bitcoin") is None
        assert backend.get("portfolio") is None

    @pytest.mark.asyncio
    async def test_should_keep_tiny_buy_after_restart(self) -> None:
        """Test a small buy above epsilon survives reload with its cash spent."""
        backend = InMemoryStorage()
        engine = make_engine({"bitcoin": 50000.0}, backend=backend)

        await engine.execute(Order.buy("bitcoin", 1.0))

        restarted = make_engine(backend=backend)
        assert restarted.position("bitcoin").quantity == pytest.approx(2e-05)
        assert restarted.portfolio.cash_balance == pytest.approx(9999.0)

    @pytest.mark.asyncio
    async def test_should_add_small_quantity_to_existing_position(self) -> None:
        """Test the minimum applies to the resulting position, not the increment."""
        engine = make_engine({"bitcoin": 50000.0})
        await engine.execute(Order.buy("bitcoin", 1.0))

        receipt = await engine.execute(Order.buy("bitcoin", 0.01))

        assert receipt.quantity == pytest.approx(2e-07)
        assert engine.position("bitcoin").quantity == pytest.approx(2.02e-05)


class TestPortfolioEngineSells:
    """Test suite for sell orders."""

    @pytest.mark.asyncio
    async def test_should_close_position_sold_by_cash_amount(self) -> None:
        """Test selling the cash value of the whole holding leaves no dust."""
        # Arrange
        engine = make_engine({"bitcoin": 30.0})
        await engine.execute(Order.buy("bitcoin", 1000.0))

        # Act
        receipt = await engine.execute(Order.sell("bitcoin", 1000.0, AmountType.CASH))

        # Assert
        assert engine.position("bitcoin") is None
        assert engine.portfolio.cash_balance == pytest.approx(10000.0)
        assert receipt.realized_pnl == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_should_realize_loss(self) -> None:
        """Test a full sell below cost."""
        source = StaticPriceSource({"AAPL": 200.0})
        engine = make_engine(source=source)
        await engine.execute(Order.buy("AAPL", 5, AmountType.UNITS))
        source.set_price("AAPL", 150.0)

        receipt = await engine.execute(Order.sell("AAPL", 5))

        assert receipt.realized_pnl == pytest.approx(-250.0)
        assert engine.position("AAPL") is None
        assert engine.portfolio.cash_balance == pytest.approx(10000.0 - 250.0)

    @pytest.mark.asyncio
    async def test_should_reject_selling_unheld_asset(self) -> None:
        """Test selling an asset never bought."""
        engine = make_engine({"AAPL": 200.0})

        with pytest.raises(InsufficientHoldingsError):
            await engine.execute(Order.sell("AAPL", 1))

    @pytest.mark.asyncio
    async def test_should_fall_back_to_last_known_price(self) -> None:
        """Test a held asset trades at its last known price when quotes fail."""
        # Arrange
        source = StaticPriceSource({"AAPL": 200.0})
        engine = make_engine(source=source)
        await engine.execute(Order.buy("AAPL", 2, AmountType.UNITS))
        source.remove("AAPL")

        # Act
        receipt = await engine.execute(Order.sell("AAPL", 1))

        # Assert
        assert receipt.unit_price == 200.0
        assert engine.position("AAPL").quantity == 1


class TestPortfolioEngineValidation:
    """Test suite for rejected orders."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "order",
        [
            Order.buy("", 100.0),
            Order.buy("   ", 100.0),
            Order.buy("bitcoin", 0.0),
            Order.buy("bitcoin", -5.0),
            Order.buy("bitcoin", math.nan),
            Order.buy("bitcoin", 100.0, price=0.0),
            Order("bitcoin", "short", 100.0),  # type: ignore[arg-type]
            Order("bitcoin", OrderSide.BUY, 100.0, "shares"),  # type: ignore[arg-type]
        ],
    )
    async def test_should_reject_malformed_orders_before_price_lookup(self, order: Order) -> None:
        """Test validation happens before the price source is consulted."""
        source = StaticPriceSource({"bitcoin": 50.0})
        engine = make_engine(source=source)

        with pytest.raises(InvalidOrderError):
            await engine.execute(order)

        assert source.requests == []
        assert engine.portfolio.cash_balance == 10000.0

    @pytest.mark.asyncio
    async def test_should_reject_zero_price_quote(self) -> None:
        """Test a zero unit price is invalid."""
        engine = make_engine({"scamcoin": 0.0})

        with pytest.raises(InvalidOrderError, match="Unit price must be positive"):
            await engine.execute(Order.buy("scamcoin", 10.0))

    @pytest.mark.asyncio
    async def test_should_raise_when_no_price_exists(self) -> None:
        """Test PriceUnavailableError for an unknown, unheld asset."""
        engine = make_engine()

        with pytest.raises(PriceUnavailableError) as exc_info:
            await engine.execute(Order.buy("dogecoin", 10.0))

        assert exc_info.value.asset_id == "dogecoin"

    @pytest.mark.asyncio
    async def test_should_treat_failing_source_as_unavailable(self) -> None:
        """Test exceptions from the price source count as no quote."""
        source = Mock(spec=PriceSource)
        source.get_quote = AsyncMock(side_effect=RuntimeError("rate limited"))
        engine = make_engine(source=source)

        with pytest.raises(PriceUnavailableError):
            await engine.execute(Order.buy("bitcoin", 10.0))


class TestPortfolioEngineAtomicity:
    """Test suite for all-or-nothing execution."""

    @pytest.mark.asyncio
    async def test_should_roll_back_when_save_fails(self) -> None:
        """Test a failed save restores cash and positions."""
        # Arrange
        engine = make_engine({"bitcoin": 50.0})
        await engine.execute(Order.buy("bitcoin", 1000.0))
        engine.store.save = Mock(side_effect=OSError("disk full"))

        # Act
        with pytest.raises(OSError, match="disk full"):
            await engine.execute(Order.buy("bitcoin", 500.0))
        with pytest.raises(OSError, match="disk full"):
            await engine.execute(Order.sell("bitcoin", 20.0))

        # Assert
        assert engine.portfolio.cash_balance == pytest.approx(9000.0)
        assert engine.position("bitcoin").quantity == pytest.approx(20.0)
        assert engine.position("bitcoin").average_cost == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_should_serialize_concurrent_orders(self) -> None:
        """Test two buys that each fit but together overspend."""
        # Arrange
        engine = make_engine(source=SlowPriceSource({"bitcoin": 10.0}))

        # Act
        results = await asyncio.gather(
            engine.execute(Order.buy("bitcoin", 6000.0)),
            engine.execute(Order.buy("bitcoin", 6000.0)),
            return_exceptions=True,
        )

        # Assert
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientFundsError)
        assert engine.portfolio.cash_balance == pytest.approx(4000.0)
        assert engine.position("bitcoin").quantity == pytest.approx(600.0)


class TestPortfolioEngineRefresh:
    """Test suite for refresh_prices."""

    @pytest.mark.asyncio
    async def test_should_update_last_known_prices(self) -> None:
        """Test refresh updates held positions and persists."""
        # Arrange
        backend = InMemoryStorage()
        source = StaticPriceSource({"bitcoin": 50.0, "AAPL": 100.0})
        engine = make_engine(source=source, backend=backend)
        await engine.execute(Order.buy("bitcoin", 1000.0))
        await engine.execute(Order.buy("AAPL", 1, AmountType.UNITS))
        source.set_price("bitcoin", 75.0)
        source.remove("AAPL")

        # Act
        quotes = await engine.refresh_prices()

        # Assert
        assert set(quotes) == {"bitcoin"}
        assert engine.position("bitcoin").last_known_price == 75.0
        assert engine.position("AAPL").last_known_price == 100.0
        record = json.loads(backend.get("portfolio"))
        assert record["positions"]["bitcoin"]["lastKnownPrice"] == 75.0

    @pytest.mark.asyncio
    async def test_should_return_quotes_for_unheld_assets(self) -> None:
        """Test explicit ids are fetched without creating positions."""
        engine = make_engine({"ethereum": 2500.0})

        quotes = await engine.refresh_prices(["ethereum", "ethereum"])

        assert quotes == {"ethereum": Quote(price=2500.0)}
        assert engine.portfolio.positions == {}
        assert engine.quotes.get("ethereum").price == 2500.0

    @pytest.mark.asyncio
    async def test_should_treat_single_string_as_one_asset(self) -> None:
        """Test a bare asset id is not split into characters."""
        source = StaticPriceSource({"bitcoin": 50.0})
        engine = make_engine(source=source)

        quotes = await engine.refresh_prices("bitcoin")

        assert quotes == {"bitcoin": Quote(price=50.0)}
        assert source.requests == ["bitcoin"]

    @pytest.mark.asyncio
    async def test_should_return_empty_without_positions(self) -> None:
        """Test refreshing an empty portfolio asks for nothing."""
        source = StaticPriceSource()
        engine = make_engine(source=source)

        assert await engine.refresh_prices() == {}
        assert source.requests == []

    @pytest.mark.asyncio
    async def test_should_discard_superseded_refresh(self) -> None:
        """Test an older refresh that resolves last does not overwrite a newer one."""
        # Arrange
        source = ScriptedPriceSource()
        engine = make_engine(source=source)
        await engine.execute(Order.buy("bitcoin", 1000.0, price=50.0))

        # Act
        older = asyncio.create_task(engine.refresh_prices(["bitcoin"]))
        await wait_for_requests(source, 1)
        newer = asyncio.create_task(engine.refresh_prices(["bitcoin"]))
        await wait_for_requests(source, 2)

        source.pending[1].set_result(Quote(price=200.0))
        newer_result = await newer
        source.pending[0].set_result(Quote(price=100.0))
        older_result = await older

        # Assert
        assert newer_result == {"bitcoin": Quote(price=200.0)}
        assert older_result == {}
        assert engine.position("bitcoin").last_known_price == 200.0
        assert engine.quotes.get("bitcoin").price == 200.0


class TestPortfolioEngineMetrics:
    """Test suite for metrics, history and trend."""

    @pytest.mark.asyncio
    async def test_should_use_quotes_seen_by_engine(self) -> None:
        """Test metrics value positions at the latest accepted quote."""
        # Arrange
        source = StaticPriceSource({"bitcoin": 50.0})
        engine = make_engine(source=source)
        await engine.execute(Order.buy("bitcoin", 1000.0))
        source.set_price("bitcoin", 60.0, change_24h=20.0)
        await engine.refresh_prices()

        # Act
        snapshot = engine.metrics()

        # Assert
        assert snapshot.equity_value == pytest.approx(1200.0)
        assert snapshot.total_value == pytest.approx(10200.0)
        assert snapshot.percent_return == pytest.approx(2.0)
        assert snapshot.position("bitcoin").change_24h == 20.0
        assert snapshot.position("bitcoin").price_is_stale is False

    @pytest.mark.asyncio
    async def test_should_prefer_explicit_quotes(self) -> None:
        """Test caller quotes override the engine's quotes."""
        engine = make_engine({"bitcoin": 50.0})
        await engine.execute(Order.buy("bitcoin", 1000.0))

        snapshot = engine.metrics({"bitcoin": Quote(price=25.0)})

        assert snapshot.total_value == pytest.approx(9500.0)

    def test_should_be_stale_without_quotes(self) -> None:
        """Test positions loaded from storage are valued at the last known price."""
        record = {
            "cashBalance": 100.0,
            "startingBalance": 1000.0,
            "positions": {"AAPL": {"quantity": 2, "averageCost": 100, "lastKnownPrice": 150}},
        }
        engine = make_engine(backend=InMemoryStorage({"portfolio": json.dumps(record)}))

        snapshot = engine.metrics()

        assert snapshot.total_value == pytest.approx(400.0)
        assert snapshot.position("AAPL").price_is_stale is True

    @pytest.mark.asyncio
    async def test_should_record_bounded_history(self) -> None:
        """Test record_snapshot keeps the last N totals and persists them."""
        # Arrange
        backend = InMemoryStorage()
        source = StaticPriceSource({"bitcoin": 50.0})
        engine = make_engine(source=source, backend=backend, config=EngineConfig(history_length=3))
        await engine.execute(Order.buy("bitcoin", 1000.0))

        # Act
        for price in [50.0, 55.0, 60.0, 65.0]:
            source.set_price("bitcoin", price)
            await engine.refresh_prices()
            engine.record_snapshot()

        # Assert
        assert engine.history.values() == pytest.approx([10100.0, 10200.0, 10300.0])
        assert engine.value_trend() == "up"
        assert json.loads(backend.get("portfolioHistory")) == pytest.approx(
            [10100.0, 10200.0, 10300.0]
        )

    def test_should_load_history_from_store(self) -> None:
        """Test history survives a restart."""
        backend = InMemoryStorage({"portfolioHistory": "[9000.0]"})

        engine = make_engine(backend=backend)

        assert engine.history.values() == [9000.0]
        assert engine.value_trend() == "down"


class TestPortfolioEngineLifecycle:
    """Test suite for load, reset and close."""

    def test_should_drop_dust_positions_on_load(self) -> None:
        """Test stored positions within epsilon of zero are discarded."""
        record = {
            "cashBalance": 100.0,
            "startingBalance": 100.0,
            "positions": {
                "bitcoin": {"quantity": 1e-9, "averageCost": 1.0, "lastKnownPrice": 1.0},
                "AAPL": {"quantity": 1.0, "averageCost": 1.0, "lastKnownPrice": 1.0},
            },
        }

        engine = make_engine(backend=InMemoryStorage({"portfolio": json.dumps(record)}))

        assert set(engine.portfolio.positions) == {"AAPL"}

    @pytest.mark.asyncio
    async def test_should_reset_and_persist(self) -> None:
        """Test reset clears positions and history in storage."""
        # Arrange
        backend = InMemoryStorage()
        engine = make_engine({"bitcoin": 50.0}, backend=backend)
        await engine.execute(Order.buy("bitcoin", 1000.0))
        engine.record_snapshot()

        # Act
        portfolio = engine.reset(2500.0)

        # Assert
        assert portfolio is engine.portfolio
        assert json.loads(backend.get("portfolio")) == {
            "cashBalance": 2500.0,
            "startingBalance": 2500.0,
            "positions": {},
        }
        assert json.loads(backend.get("portfolioHistory")) == []
        assert len(engine.history) == 0

    @pytest.mark.parametrize("balance", [99.99, 0.0, -10.0, math.inf, 1e9])
    def test_should_reject_out_of_range_reset(self, balance: float) -> None:
        """Test reset bounds leave the portfolio untouched."""
        engine = make_engine()

        with pytest.raises(InvalidOrderError):
            engine.reset(balance)

        assert engine.portfolio.cash_balance == 10000.0

    def test_should_accept_minimum_reset(self) -> None:
        """Test the minimum balance itself is allowed."""
        engine = make_engine()

        engine.reset(100.0)

        assert engine.portfolio.starting_balance == 100.0

    @pytest.mark.asyncio
    async def test_should_close_price_source(self) -> None:
        """Test close delegates to the price source."""
        source = Mock(spec=PriceSource)
        source.close = AsyncMock()
        engine = make_engine(source=source)

        await engine.close()

        source.close.assert_awaited_once()
