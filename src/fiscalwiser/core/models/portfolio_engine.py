"""
Portfolio engine - orchestrates storage, ledger, and market data.

This module provides the single entry point the simulators use: execute
orders, refresh prices, read metrics, reset. The engine owns the one
Portfolio instance; every mutation goes through it.
"""

import asyncio
import copy
from collections.abc import Generator, Iterable, Mapping
from contextlib import contextmanager

from loguru import logger

from fiscalwiser.core.constants import FUNDS_TOLERANCE
from fiscalwiser.core.enums import AmountType, OrderSide
from fiscalwiser.core.exceptions.portfolio import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidOrderError,
    PriceUnavailableError,
)
from fiscalwiser.core.interfaces.market import PriceSource
from fiscalwiser.core.models.asset import Quote
from fiscalwiser.core.models.config import EngineConfig
from fiscalwiser.core.models.order import ExecutionReceipt, Order
from fiscalwiser.core.models.portfolio import Portfolio
from fiscalwiser.core.models.portfolio_metrics import PortfolioMetrics, PortfolioSnapshot
from fiscalwiser.core.models.position import Position
from fiscalwiser.core.models.position_ledger import PositionLedger
from fiscalwiser.core.models.quote_book import QuoteBook
from fiscalwiser.core.models.value_history import ValueHistory
from fiscalwiser.core.types.financial import ZERO, is_finite_number
from fiscalwiser.core.utils.decorators import log_operation
from fiscalwiser.core.utils.validation import validate_asset_id, validate_positive
from fiscalwiser.infrastructure.storage.portfolio_store import PortfolioStore


class PortfolioEngine:
    """Validates and executes orders against one persisted portfolio.

    Orders are all-or-nothing: every check runs after the price is known and
    before anything changes, and a failed save rolls the change back.
    Concurrent ``execute`` calls on one event loop are serialized.
    """

    def __init__(
        self,
        store: PortfolioStore,
        price_source: PriceSource,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = (config or EngineConfig()).validate()
        self.store = store
        self.price_source = price_source
        self.ledger = PositionLedger(epsilon=self.config.quantity_epsilon)
        self.quotes = QuoteBook()
        self._portfolio = store.load()
        self._drop_dust_positions()
        self.history = ValueHistory(store.load_history(), maxlen=self.config.history_length)
        self._lock = asyncio.Lock()

    @property
    def portfolio(self) -> Portfolio:
        """The live portfolio. Treat as read-only; mutate through the engine."""
        return self._portfolio

    def position(self, asset_id: str) -> Position | None:
        """Position for asset_id, or None if not held."""
        return self._portfolio.position(asset_id)

    def _drop_dust_positions(self) -> None:
        dust = [
            asset_id
            for asset_id, position in self._portfolio.positions.items()
            if position.quantity <= self.config.quantity_epsilon
        ]
        for asset_id in dust:
            logger.warning(f"Dropping stored dust position {asset_id}")
            del self._portfolio.positions[asset_id]

    # Order handling

    @staticmethod
    def _validate_order(order: Order) -> tuple[str, OrderSide, AmountType, float]:
        """Check order shape before any price lookup."""
        asset_id = validate_asset_id(order.asset_id)
        try:
            side = OrderSide(order.side)
            amount_type = AmountType(order.amount_type)
        except ValueError as e:
            raise InvalidOrderError(f"Invalid order: {e}") from e
        amount = validate_positive(order.amount, "amount")
        if order.price is not None:
            validate_positive(order.price, "price")
        return asset_id, side, amount_type, amount

    async def _fetch_quote(self, asset_id: str) -> Quote | None:
        """Ask the price source; any failure counts as unavailable."""
        try:
            return await self.price_source.get_quote(asset_id)
        except Exception as e:
            logger.warning(f"Price source failed for {asset_id}: {e}")
            return None

    async def _resolve_price(self, asset_id: str, order: Order) -> tuple[float, Quote | None]:
        """Unit price for an order: explicit price, live quote, then last known price.

        Raises:
            PriceUnavailableError: If none of the three exists
        """
        if order.price is not None:
            return float(order.price), None

        quote = await self._fetch_quote(asset_id)
        if quote is not None:
            return quote.price, quote

        position = self._portfolio.position(asset_id)
        if position is not None:
            logger.info(
                f"No live quote for {asset_id}, "
                f"using last known price {position.last_known_price}"
            )
            return position.last_known_price, None

        raise PriceUnavailableError(asset_id)

    @staticmethod
    def _normalize_quantity(amount: float, amount_type: AmountType, unit_price: float) -> float:
        """Convert an order amount into units."""
        if amount_type.is_cash:
            return amount / unit_price
        return amount

    @log_operation
    async def execute(self, order: Order) -> ExecutionReceipt:
        """Validate and apply one order, then persist.

        Args:
            order: Buy or sell request

        Returns:
            ExecutionReceipt describing what was applied

        Raises:
            InvalidOrderError: Malformed order or non-positive unit price
            PriceUnavailableError: No live or last known price
            InsufficientFundsError: Buy cost exceeds cash
            InsufficientHoldingsError: Sell quantity exceeds holdings
        """
        asset_id, side, amount_type, amount = self._validate_order(order)

        async with self._lock:
            unit_price, quote = await self._resolve_price(asset_id, order)
            if not is_finite_number(unit_price) or unit_price <= ZERO:
                raise InvalidOrderError(f"Unit price must be positive, got {unit_price}")

            quantity = self._normalize_quantity(amount, amount_type, unit_price)
            if quantity <= ZERO or not is_finite_number(quantity):
                raise InvalidOrderError(f"Order resolves to an invalid quantity: {quantity}")

            if side.is_buy:
                resulting = self._portfolio.held_quantity(asset_id) + quantity
                if resulting <= self.config.quantity_epsilon:
                    raise InvalidOrderError(
                        f"Order for {asset_id} resolves to {quantity:.10g} units, "
                        f"below the minimum of {self.config.quantity_epsilon:g}"
                    )
                cost = amount if amount_type.is_cash else quantity * unit_price
                receipt = self._apply_buy(asset_id, quantity, unit_price, cost, quote)
            else:
                receipt = self._apply_sell(asset_id, quantity, unit_price, quote)

            if quote is not None:
                self.quotes.record(asset_id, quote)
            return receipt

    def _apply_buy(
        self,
        asset_id: str,
        quantity: float,
        unit_price: float,
        cost: float,
        quote: Quote | None,
    ) -> ExecutionReceipt:
        portfolio = self._portfolio
        if cost > portfolio.cash_balance + FUNDS_TOLERANCE:
            raise InsufficientFundsError(
                required=cost,
                available=portfolio.cash_balance,
                operation=f"buying {quantity:.8f} {asset_id} at {unit_price}",
            )

        metadata = quote.metadata if quote is not None else None
        with self._rollback_on_failure():
            portfolio.cash_balance = max(portfolio.cash_balance - cost, ZERO)
            self.ledger.apply_buy(portfolio.positions, asset_id, quantity, unit_price, metadata)
            self.store.save(portfolio)

        return ExecutionReceipt(
            asset_id=asset_id,
            side=OrderSide.BUY,
            quantity=quantity,
            unit_price=unit_price,
            amount=cost,
            cash_balance=portfolio.cash_balance,
        )

    def _apply_sell(
        self, asset_id: str, quantity: float, unit_price: float, quote: Quote | None
    ) -> ExecutionReceipt:
        portfolio = self._portfolio
        if not self.ledger.can_sell(portfolio.positions, asset_id, quantity):
            raise InsufficientHoldingsError(
                asset_id=asset_id,
                requested=quantity,
                held=portfolio.held_quantity(asset_id),
            )

        with self._rollback_on_failure():
            result = self.ledger.apply_sell(portfolio.positions, asset_id, quantity, unit_price)
            portfolio.cash_balance += result.proceeds
            remaining = portfolio.position(asset_id)
            if remaining is not None and quote is not None and quote.metadata is not None:
                remaining.last_known_metadata = quote.metadata
            self.store.save(portfolio)

        return ExecutionReceipt(
            asset_id=asset_id,
            side=OrderSide.SELL,
            quantity=result.quantity,
            unit_price=unit_price,
            amount=result.proceeds,
            cash_balance=portfolio.cash_balance,
            realized_pnl=result.realized_pnl,
        )

    @contextmanager
    def _rollback_on_failure(self) -> Generator[None]:
        """Restore cash and positions if the wrapped block raises."""
        cash = self._portfolio.cash_balance
        positions = copy.deepcopy(self._portfolio.positions)
        try:
            yield
        except Exception as e:
            self._portfolio.cash_balance = cash
            self._portfolio.positions.clear()
            self._portfolio.positions.update(positions)
            logger.error(f"Order rolled back after failure: {e}")
            raise

    # Prices and metrics

    async def refresh_prices(
        self, asset_ids: str | Iterable[str] | None = None
    ) -> dict[str, Quote]:
        """Fetch quotes and update last known prices of held positions.

        Results of requests superseded by a newer request for the same asset
        are dropped without touching state.

        Args:
            asset_ids: Asset id or ids to refresh; defaults to every held position

        Returns:
            Accepted quotes keyed by asset id
        """
        if isinstance(asset_ids, str):
            asset_ids = [asset_ids]
        requested = asset_ids if asset_ids is not None else self._portfolio.positions
        ids = list(dict.fromkeys(requested))
        if not ids:
            return {}

        tickets = {asset_id: self.quotes.issue_ticket(asset_id) for asset_id in ids}
        results = await asyncio.gather(*(self._fetch_quote(asset_id) for asset_id in ids))

        accepted: dict[str, Quote] = {}
        changed = False
        for asset_id, quote in zip(ids, results, strict=True):
            if not self.quotes.accept(asset_id, tickets[asset_id], quote):
                logger.debug(f"Discarding superseded quote for {asset_id}")
                continue
            if quote is None:
                continue
            accepted[asset_id] = quote
            position = self._portfolio.position(asset_id)
            if position is not None:
                position.last_known_price = quote.price
                if quote.metadata is not None:
                    position.last_known_metadata = quote.metadata
                changed = True

        if changed:
            self.store.save(self._portfolio)
        logger.info(f"Refreshed {len(accepted)}/{len(ids)} quotes")
        return accepted

    def metrics(self, quotes: Mapping[str, Quote] | None = None) -> PortfolioSnapshot:
        """Derived figures at current prices. No side effects.

        Args:
            quotes: Quotes overriding the ones the engine has seen
        """
        effective = {**self.quotes.snapshot(), **(quotes or {})}
        return PortfolioMetrics(self._portfolio).snapshot(effective)

    def record_snapshot(self, quotes: Mapping[str, Quote] | None = None) -> float:
        """Append the current total value to the value history and persist it."""
        total = self.metrics(quotes).total_value
        self.history.append(total)
        self.store.save_history(self.history.values())
        return total

    def value_trend(self) -> str:
        """Latest recorded total value against the starting balance."""
        return self.history.trend(self._portfolio.starting_balance)

    # Lifecycle

    @log_operation
    def reset(self, new_starting_balance: float) -> Portfolio:
        """Clear positions and restart with new_starting_balance in cash.

        Raises:
            InvalidOrderError: If the balance is outside the configured bounds
        """
        balance = validate_positive(new_starting_balance, "starting balance")
        if balance < self.config.min_starting_balance:
            raise InvalidOrderError(
                f"Minimum starting balance is {self.config.min_starting_balance:.2f}, "
                f"got {balance:.2f}"
            )
        if balance > self.config.max_starting_balance:
            raise InvalidOrderError(
                f"Maximum starting balance is {self.config.max_starting_balance:.2f}, "
                f"got {balance:.2f}"
            )

        self._portfolio.restart(balance)
        self.history.clear()
        self.store.save(self._portfolio)
        self.store.save_history(self.history.values())
        return self._portfolio

    async def close(self) -> None:
        await self.price_source.close()

