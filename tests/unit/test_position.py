"""
Unit tests for Position, AssetMetadata and Quote models.
Following TDD approach - write failing tests first.
"""

import math

import pytest

from fiscalwiser.core.exceptions.portfolio import ValidationError
from fiscalwiser.core.models.asset import AssetMetadata, Quote
from fiscalwiser.core.models.position import Position


class TestPositionCreation:
    """Test suite for Position validation."""

    def test_should_create_position_with_valid_data(self) -> None:
        """Test creating a position."""
        # Arrange
        metadata = AssetMetadata(id="bitcoin", name="Bitcoin", symbol="BTC")

        # Act
        position = Position(
            quantity=0.5,
            average_cost=40000.0,
            last_known_price=42000.0,
            last_known_metadata=metadata,
        )

        # Assert
        assert position.quantity == 0.5
        assert position.average_cost == 40000.0
        assert position.last_known_price == 42000.0
        assert position.last_known_metadata == metadata

    @pytest.mark.parametrize("quantity", [0.0, -1.0, math.nan])
    def test_should_reject_non_positive_quantity(self, quantity: float) -> None:
        """Test that quantity must be positive."""
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            Position(quantity=quantity, average_cost=10.0, last_known_price=10.0)

    def test_should_reject_negative_cost_or_price(self) -> None:
        """Test that cost and price cannot be negative."""
        with pytest.raises(ValidationError, match="Average cost"):
            Position(quantity=1.0, average_cost=-1.0, last_known_price=10.0)
        with pytest.raises(ValidationError, match="Last known price"):
            Position(quantity=1.0, average_cost=1.0, last_known_price=math.inf)


class TestPositionCalculations:
    """Test suite for Position valuation helpers."""

    def test_should_calculate_cost_basis_and_market_value(self) -> None:
        """Test cost basis and market value."""
        position = Position(quantity=15.0, average_cost=60.0, last_known_price=80.0)

        assert position.cost_basis() == pytest.approx(900.0)
        assert position.market_value(80.0) == pytest.approx(1200.0)

    def test_should_calculate_unrealized_pnl(self) -> None:
        """Test unrealized PnL at a given price."""
        position = Position(quantity=15.0, average_cost=60.0, last_known_price=80.0)

        assert position.unrealized_pnl(80.0) == pytest.approx(300.0)
        assert position.unrealized_pnl(50.0) == pytest.approx(-150.0)


class TestAssetMetadata:
    """Test suite for AssetMetadata."""

    def test_should_round_trip_through_dict(self) -> None:
        """Test stored representation."""
        metadata = AssetMetadata(id="ethereum", name="Ethereum", symbol="ETH", image="eth.png")

        assert AssetMetadata.from_dict(metadata.to_dict()) == metadata

    def test_should_default_missing_display_fields(self) -> None:
        """Test that only id is required."""
        metadata = AssetMetadata.from_dict({"id": "AAPL"})

        assert metadata.name == ""
        assert metadata.symbol == ""
        assert metadata.image is None

    def test_should_keep_null_and_empty_fields_as_stored(self) -> None:
        """Test null name and empty image are not normalized."""
        data = {"id": "AAPL", "name": None, "symbol": "AAPL", "image": ""}

        assert AssetMetadata.from_dict(data).to_dict() == data

    @pytest.mark.parametrize(
        "data",
        [None, "bitcoin", {"name": "Bitcoin"}, {"id": ""}, {"id": "AAPL", "name": 7}],
    )
    def test_should_reject_invalid_records(self, data: object) -> None:
        """Test that malformed metadata raises ValidationError."""
        with pytest.raises(ValidationError):
            AssetMetadata.from_dict(data)


class TestQuote:
    """Test suite for Quote."""

    def test_should_create_quote(self) -> None:
        """Test a valid quote."""
        quote = Quote(price=100.0, change_24h=-2.5)

        assert quote.price == 100.0
        assert quote.change_24h == -2.5
        assert quote.metadata is None

    def test_should_reject_invalid_price(self) -> None:
        """Test that negative and non-finite prices are rejected."""
        with pytest.raises(ValidationError, match="Quote price"):
            Quote(price=-1.0)
        with pytest.raises(ValidationError, match="Quote price"):
            Quote(price=math.nan)

    def test_should_reject_non_finite_change(self) -> None:
        """Test that the 24h change must be finite when given."""
        with pytest.raises(ValidationError, match="change_24h"):
            Quote(price=1.0, change_24h=math.inf)
