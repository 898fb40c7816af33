from pydantic import BaseModel
from datetime import date, datetime
from typing import Dict, List, Optional
from duty_rotation.schemas.scope import ScopeInfo


class SwapSuggestionOut(BaseModel):
    underloaded_id: int
    overloaded_id: int
    underloaded_count: int
    overloaded_count: int


class StatisticsOut(BaseModel):
    """Схема статистики нагрузки по области"""
    scope: ScopeInfo
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_assignments: int
    per_person_load: Dict[int, int]
    load_share: Dict[int, float]
    average: float
    underloaded: List[int]
    overloaded: List[int]
    balanced: bool
    recommendations: List[str]
    suggested_swaps: List[SwapSuggestionOut]
    equity_score: float
    understaffed_assignments: int
    access: str
    generated_at: Optional[datetime] = None
    computed_at: datetime
