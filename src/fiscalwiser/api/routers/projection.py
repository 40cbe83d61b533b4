"""
Projection API endpoints.
"""

from fastapi import APIRouter

from fiscalwiser.api.schemas.api_models import ProjectionRequest, ProjectionResponse
from fiscalwiser.core.models.projection import MetricsProjector

router = APIRouter()


@router.post("", response_model=ProjectionResponse)
async def project_balance(request: ProjectionRequest) -> ProjectionResponse:
    """Project a balance forward under fixed contributions."""
    projector = MetricsProjector(periods_per_year=request.periods_per_year)
    series = projector.project(
        request.initial_balance,
        request.periodic_contribution,
        request.annual_rate,
        request.periods,
    )
    balances = list(series)
    return ProjectionResponse(
        balances=balances,
        final_balance=balances[-1] if balances else series.initial_balance,
        total_contributions=series.total_contributions(),
    )
