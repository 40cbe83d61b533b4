"""
Recent total-value history for the dashboard trend card.
"""

from collections import deque
from collections.abc import Iterable

from fiscalwiser.core.constants import DEFAULT_HISTORY_LENGTH


class ValueHistory:
    """Bounded sequence of recent portfolio total values, oldest first."""

    def __init__(
        self, values: Iterable[float] = (), maxlen: int = DEFAULT_HISTORY_LENGTH
    ) -> None:
        if maxlen <= 0:
            raise ValueError(f"History length must be positive, got {maxlen}")
        self._values: deque[float] = deque(values, maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._values.maxlen or 0

    def __len__(self) -> int:
        return len(self._values)

    def append(self, value: float) -> None:
        """Add the newest value, dropping the oldest when full."""
        self._values.append(value)

    def values(self) -> list[float]:
        return list(self._values)

    def latest(self) -> float | None:
        return self._values[-1] if self._values else None

    def clear(self) -> None:
        self._values.clear()

    def trend(self, reference: float) -> str:
        """Direction of the latest value relative to reference.

        Returns:
            "up", "down", or "stable" (also when the history is empty)
        """
        latest = self.latest()
        if latest is None or latest == reference:
            return "stable"
        return "up" if latest > reference else "down"
