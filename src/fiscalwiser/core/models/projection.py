"""
Balance projection under fixed periodic contributions.

Shared by the budget and retirement views: each period the contribution is
added and the balance grows by one period's share of the annual rate.
"""

from collections.abc import Iterator
from dataclasses import dataclass

import pandas as pd

from fiscalwiser.core.constants import (
    DEFAULT_PERIODS_PER_YEAR,
    MAX_ANNUAL_RATE,
    MAX_PROJECTION_PERIODS,
)
from fiscalwiser.core.exceptions.portfolio import InvalidParametersError
from fiscalwiser.core.utils.validation import validate_finite, validate_range


@dataclass(frozen=True)
class ProjectionSeries:
    """Lazy, finite, restartable sequence of per-period balances.

    Balances are recomputed on every iteration, so iterating twice yields
    the same values and nothing is held in memory between passes.
    """

    initial_balance: float
    periodic_contribution: float
    annual_rate: float
    periods: int
    periods_per_year: int = DEFAULT_PERIODS_PER_YEAR

    @property
    def period_rate(self) -> float:
        return self.annual_rate / self.periods_per_year

    def __iter__(self) -> Iterator[float]:
        balance = self.initial_balance
        growth = 1.0 + self.period_rate
        for _ in range(self.periods):
            balance = (balance + self.periodic_contribution) * growth
            yield balance

    def __len__(self) -> int:
        return self.periods

    def final_balance(self) -> float:
        """Balance after the last period (initial balance if periods is 0)."""
        balance = self.initial_balance
        for balance in self:
            pass
        return balance

    def total_contributions(self) -> float:
        """Sum of contributions over all periods, initial balance excluded."""
        return self.periodic_contribution * self.periods

    def to_frame(self) -> pd.DataFrame:
        """Tabulate the projection.

        Returns:
            DataFrame with columns period, balance, contributions, growth where
            contributions is cumulative and growth is balance minus everything
            paid in.
        """
        balances = list(self)
        periods = range(1, self.periods + 1)
        contributions = [self.periodic_contribution * period for period in periods]
        frame = pd.DataFrame(
            {
                "period": list(periods),
                "balance": balances,
                "contributions": contributions,
            },
            columns=["period", "balance", "contributions"],
        )
        frame["growth"] = frame["balance"] - frame["contributions"] - self.initial_balance
        return frame


class MetricsProjector:
    """Builds ProjectionSeries from validated parameters.

    Args:
        periods_per_year: Compounding periods per year (12 = monthly)
        max_annual_rate: Largest accepted absolute annual rate
    """

    def __init__(
        self,
        periods_per_year: int = DEFAULT_PERIODS_PER_YEAR,
        max_annual_rate: float = MAX_ANNUAL_RATE,
    ) -> None:
        if isinstance(periods_per_year, bool) or not isinstance(periods_per_year, int):
            raise InvalidParametersError(
                f"periods_per_year must be an integer, got {periods_per_year!r}"
            )
        if periods_per_year <= 0:
            raise InvalidParametersError(
                f"periods_per_year must be positive, got {periods_per_year}"
            )
        self.periods_per_year = periods_per_year
        self.max_annual_rate = max_annual_rate

    def project(
        self,
        initial_balance: float,
        periodic_contribution: float,
        annual_rate: float,
        periods: int,
    ) -> ProjectionSeries:
        """Project a balance forward.

        Args:
            initial_balance: Balance before the first period
            periodic_contribution: Amount added at the start of each period
            annual_rate: Annual growth rate as a fraction (0.07 = 7%)
            periods: Number of periods to project

        Returns:
            ProjectionSeries yielding one balance per period

        Raises:
            InvalidParametersError: If periods is negative or too large, the
                rate is outside +/- max_annual_rate, or an input is not finite
        """
        initial = validate_finite(initial_balance, "initial_balance", InvalidParametersError)
        contribution = validate_finite(
            periodic_contribution, "periodic_contribution", InvalidParametersError
        )
        rate = validate_range(
            annual_rate,
            "annual_rate",
            -self.max_annual_rate,
            self.max_annual_rate,
            InvalidParametersError,
        )
        if isinstance(periods, bool) or not isinstance(periods, int):
            raise InvalidParametersError(f"periods must be an integer, got {periods!r}")
        if periods < 0:
            raise InvalidParametersError(f"periods must be non-negative, got {periods}")
        if periods > MAX_PROJECTION_PERIODS:
            raise InvalidParametersError(
                f"periods must be at most {MAX_PROJECTION_PERIODS}, got {periods}"
            )

        return ProjectionSeries(
            initial_balance=initial,
            periodic_contribution=contribution,
            annual_rate=rate,
            periods=periods,
            periods_per_year=self.periods_per_year,
        )
