"""
Unit tests for ValueHistory.
"""

import pytest

from fiscalwiser.core.models.value_history import ValueHistory


class TestValueHistory:
    """Test suite for the bounded value history."""

    def test_should_keep_only_most_recent_values(self) -> None:
        """Test that the oldest value is dropped when full."""
        # Arrange
        history = ValueHistory(maxlen=5)

        # Act
        for value in [100.0, 101.0, 102.0, 103.0, 104.0, 105.0]:
            history.append(value)

        # Assert
        assert len(history) == 5
        assert history.values() == [101.0, 102.0, 103.0, 104.0, 105.0]
        assert history.latest() == 105.0

    def test_should_truncate_initial_values(self) -> None:
        """Test that loading more values than maxlen keeps the newest."""
        history = ValueHistory([1.0, 2.0, 3.0], maxlen=2)

        assert history.values() == [2.0, 3.0]
        assert history.maxlen == 2

    def test_should_report_trend_against_reference(self) -> None:
        """Test up, down and stable trends."""
        history = ValueHistory()
        assert history.trend(10000.0) == "stable"

        history.append(10500.0)
        assert history.trend(10000.0) == "up"

        history.append(9500.0)
        assert history.trend(10000.0) == "down"

        history.append(10000.0)
        assert history.trend(10000.0) == "stable"

    def test_should_clear_values(self) -> None:
        """Test clear empties the history."""
        history = ValueHistory([1.0, 2.0])

        history.clear()

        assert len(history) == 0
        assert history.latest() is None

    def test_should_reject_non_positive_length(self) -> None:
        """Test maxlen validation."""
        with pytest.raises(ValueError, match="History length must be positive"):
            ValueHistory(maxlen=0)
