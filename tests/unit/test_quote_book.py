"""
Unit tests for QuoteBook request sequencing.
"""

from fiscalwiser.core.models.asset import Quote
from fiscalwiser.core.models.quote_book import QuoteBook


class TestQuoteBook:
    """Test suite for QuoteBook."""

    def test_should_accept_result_for_current_ticket(self) -> None:
        """Test the newest request's result is stored."""
        # Arrange
        book = QuoteBook()
        ticket = book.issue_ticket("bitcoin")

        # Act
        accepted = book.accept("bitcoin", ticket, Quote(price=100.0))

        # Assert
        assert accepted is True
        assert book.get("bitcoin") == Quote(price=100.0)

    def test_should_discard_superseded_result(self) -> None:
        """Test that an older request arriving last is dropped."""
        # Arrange
        book = QuoteBook()
        older = book.issue_ticket("bitcoin")
        newer = book.issue_ticket("bitcoin")

        # Act - newer resolves first, older resolves last
        assert book.accept("bitcoin", newer, Quote(price=200.0))
        accepted = book.accept("bitcoin", older, Quote(price=100.0))

        # Assert
        assert accepted is False
        assert book.get("bitcoin").price == 200.0

    def test_should_track_tickets_per_asset(self) -> None:
        """Test that tickets for different assets are independent."""
        book = QuoteBook()
        btc = book.issue_ticket("bitcoin")
        book.issue_ticket("ethereum")

        assert book.is_current("bitcoin", btc)

    def test_should_accept_missing_quote_without_storing(self) -> None:
        """Test that a current None result is acknowledged but not stored."""
        book = QuoteBook()
        ticket = book.issue_ticket("AAPL")

        assert book.accept("AAPL", ticket, None) is True
        assert book.get("AAPL") is None

    def test_should_supersede_pending_requests_on_record(self) -> None:
        """Test that recording a quote makes older tickets stale."""
        book = QuoteBook()
        pending = book.issue_ticket("bitcoin")

        book.record("bitcoin", Quote(price=150.0))

        assert not book.accept("bitcoin", pending, Quote(price=90.0))
        assert book.get("bitcoin").price == 150.0

    def test_should_snapshot_selected_assets(self) -> None:
        """Test snapshot copies and filters."""
        book = QuoteBook()
        book.record("bitcoin", Quote(price=1.0))
        book.record("ethereum", Quote(price=2.0))

        assert set(book.snapshot()) == {"bitcoin", "ethereum"}
        assert set(book.snapshot(["ethereum", "dogecoin"])) == {"ethereum"}

    def test_should_clear_quotes_and_invalidate_tickets(self) -> None:
        """Test clear drops quotes and outstanding tickets."""
        book = QuoteBook()
        ticket = book.issue_ticket("bitcoin")
        book.record("ethereum", Quote(price=2.0))

        book.clear()

        assert book.snapshot() == {}
        assert not book.is_current("bitcoin", ticket)
