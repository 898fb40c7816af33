from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import date
from duty_rotation.errors import RotationError
from duty_rotation.schemas.statistics import StatisticsOut, SwapSuggestionOut
from duty_rotation.services.rotation_service import RotationService
from duty_rotation.auth.dependencies import get_rotation_service
from duty_rotation.api.common import http_error, scope_info
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/statistics", tags=["statistics"])


@router.get("", response_model=StatisticsOut)
def get_statistics(
    sector_id: int = Query(..., description="ID сектора"),
    service_id: Optional[int] = Query(None, description="ID службы"),
    start_date: Optional[date] = Query(None, description="Начальная дата (включительно)"),
    end_date: Optional[date] = Query(None, description="Конечная дата (включительно)"),
    service: RotationService = Depends(get_rotation_service)
):
    """
    Статистика нагрузки по области
    
    Только просмотр: очередь не меняется, рекомендации применяются
    отдельной операцией /api/rotation/optimize.
    """
    try:
        scope = service.resolve_scope(sector_id, service_id)
        stats = service.get_statistics(scope, start_date, end_date)
    except RotationError as e:
        raise http_error(e)
    
    analysis = stats.analysis
    return StatisticsOut(
        scope=scope_info(scope),
        period_start=stats.period_start,
        period_end=stats.period_end,
        total_assignments=analysis.total_assignments,
        per_person_load=analysis.per_person_load,
        load_share=analysis.load_share,
        average=analysis.average,
        underloaded=sorted(analysis.underloaded),
        overloaded=sorted(analysis.overloaded),
        balanced=analysis.balanced,
        recommendations=analysis.recommendations,
        suggested_swaps=[
            SwapSuggestionOut(
                underloaded_id=s.underloaded_id,
                overloaded_id=s.overloaded_id,
                underloaded_count=s.underloaded_count,
                overloaded_count=s.overloaded_count
            )
            for s in analysis.swaps
        ],
        equity_score=analysis.equity_score,
        understaffed_assignments=analysis.understaffed_assignments,
        access=service.access_level(scope).value,
        generated_at=stats.generated_at,
        computed_at=stats.computed_at
    )
