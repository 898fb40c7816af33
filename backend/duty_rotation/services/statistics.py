from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.models import DutyAssignment
from duty_rotation.services.assignment_service import AssignmentService
from duty_rotation.services.directory import OrgDirectory
from duty_rotation.services.rotation_queue import RotationQueueService
from duty_rotation.services.scope import Scope
import math
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapSuggestion:
    """Пара для перераспределения: недогруженный и перегруженный сотрудник"""
    underloaded_id: int
    overloaded_id: int
    underloaded_count: int
    overloaded_count: int


@dataclass
class QueueChange:
    action: str  # swap, move_to_end, move_to_front
    person_ids: List[int]
    description: str


@dataclass
class LoadAnalysis:
    total_assignments: int
    per_person_load: Dict[int, int]
    average: float
    underloaded: Set[int]
    overloaded: Set[int]
    swaps: List[SwapSuggestion]
    recommendations: List[str]
    equity_score: float
    load_share: Dict[int, float]
    understaffed_assignments: int = 0
    
    @property
    def balanced(self) -> bool:
        return not self.underloaded and not self.overloaded


@dataclass
class StatisticsResult:
    scope: Scope
    period_start: Optional[date]
    period_end: Optional[date]
    analysis: LoadAnalysis
    generated_at: Optional[datetime]
    computed_at: datetime = field(default_factory=datetime.now)


def analyze_load(
    assignment_people: Sequence[Sequence[int]],
    eligible_ids: Sequence[int],
    tolerance: float = 0.2,
    names: Optional[Mapping[int, str]] = None
) -> LoadAnalysis:
    """
    Рассчитать нагрузку по сотрудникам и рекомендации по балансировке
    
    Средняя = число назначений x дежурных на назначение / число допущенных.
    Допуск включительный: count < avg*(1-tol) - недогружен,
    count > avg*(1+tol) - перегружен.
    
    Args:
        assignment_people: Состав каждого назначения
        eligible_ids: Допущенные к ротации сотрудники
        tolerance: Относительная ширина допуска
        names: Отображаемые имена для текста рекомендаций
    """
    names = names or {}
    total = len(assignment_people)
    load: Dict[int, int] = {pid: 0 for pid in eligible_ids}
    for people in assignment_people:
        for pid in people:
            load[pid] = load.get(pid, 0) + 1
    
    filled_slots = sum(len(people) for people in assignment_people)
    personnel_per_assignment = filled_slots / total if total else 0.0
    average = total * personnel_per_assignment / len(eligible_ids) if eligible_ids else 0.0
    
    low, high = average * (1 - tolerance), average * (1 + tolerance)
    underloaded = {pid for pid in eligible_ids if load[pid] < low}
    overloaded = {pid for pid in eligible_ids if load[pid] > high}
    
    under_sorted = sorted(underloaded, key=lambda pid: (load[pid], pid))
    over_sorted = sorted(overloaded, key=lambda pid: (-load[pid], pid))
    swaps = [
        SwapSuggestion(under, over, load[under], load[over])
        for under, over in zip(under_sorted, over_sorted)
    ]
    
    def label(pid: int) -> str:
        return f"{names[pid]} (#{pid})" if names.get(pid) else f"#{pid}"
    
    recommendations: List[str] = []
    for swap in swaps:
        recommendations.append(
            f"Передать дежурство от {label(swap.overloaded_id)} ({swap.overloaded_count}) "
            f"к {label(swap.underloaded_id)} ({swap.underloaded_count})"
        )
    for pid in under_sorted[len(swaps):]:
        recommendations.append(f"Назначить больше дежурств: {label(pid)} ({load[pid]})")
    for pid in over_sorted[len(swaps):]:
        recommendations.append(f"Сократить дежурства: {label(pid)} ({load[pid]})")

    if eligible_ids and average > 0:
        counts = [load[pid] for pid in eligible_ids]
        deviation = math.sqrt(sum((c - average) ** 2 for c in counts) / len(counts))
        equity_score = round(max(0.0, 1 - deviation / average) * 100, 1)
    else:
        equity_score = 100.0
    
    load_share = {
        pid: round(count * 100 / filled_slots, 1) if filled_slots else 0.0
        for pid, count in load.items()
    }
    
    return LoadAnalysis(
        total_assignments=total,
        per_person_load=load,
        average=round(average, 4),
        underloaded=underloaded,
        overloaded=overloaded,
        swaps=swaps,
        recommendations=recommendations,
        equity_score=equity_score,
        load_share=load_share,
    )


def apply_recommendations(order: Sequence[int], analysis: LoadAnalysis) -> Tuple[List[int], List[QueueChange]]:
    """
    Построить новый порядок очереди по рекомендациям анализа
    
    Для каждой пары недогруженный/перегруженный их позиции меняются, если
    перегруженный стоит раньше. Оставшиеся недогруженные переходят в голову
    очереди, оставшиеся перегруженные - в хвост.
    """
    new_order = list(order)
    changes: List[QueueChange] = []
    paired: Set[int] = set()
    
    for swap in analysis.swaps:
        paired.update((swap.underloaded_id, swap.overloaded_id))
        if swap.underloaded_id not in new_order or swap.overloaded_id not in new_order:
            continue
        i_under = new_order.index(swap.underloaded_id)
        i_over = new_order.index(swap.overloaded_id)
        if i_over < i_under:
            new_order[i_over], new_order[i_under] = new_order[i_under], new_order[i_over]
            changes.append(QueueChange(
                action="swap",
                person_ids=[swap.underloaded_id, swap.overloaded_id],
                description=f"#{swap.underloaded_id} и #{swap.overloaded_id} поменялись местами"
            ))
    
    for pid in sorted(analysis.underloaded - paired, key=lambda p: analysis.per_person_load[p], reverse=True):
        if pid in new_order and new_order[0] != pid:
            new_order.remove(pid)
            new_order.insert(0, pid)
            changes.append(QueueChange("move_to_front", [pid], f"#{pid} перемещен в начало очереди"))
    
    for pid in sorted(analysis.overloaded - paired, key=lambda p: analysis.per_person_load[p]):
        if pid in new_order and new_order[-1] != pid:
            new_order.remove(pid)
            new_order.append(pid)
            changes.append(QueueChange("move_to_end", [pid], f"#{pid} перемещен в конец очереди"))
    
    return new_order, changes


class StatisticsService:
    """Статистика нагрузки и оптимизация очереди"""
    
    def __init__(self, db: Session, directory: Optional[OrgDirectory] = None):
        self.db = db
        self.directory = directory or OrgDirectory(db)
        self.assignment_service = AssignmentService(db, self.directory)
        self.queue_service = RotationQueueService(db, self.directory)
    
    def analyze(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> StatisticsResult:
        """Нагрузка по сохраненным назначениям; очередь не изменяется"""
        assignments: List[DutyAssignment] = self.assignment_service.list_assignments(scope, start_date, end_date)
        eligible = self.directory.list_eligible_people(scope)
        
        analysis = analyze_load(
            [a.person_ids for a in assignments],
            [person.id for person in eligible],
            tolerance=settings.balance_tolerance,
            names={person.id: person.full_name for person in eligible},
        )
        analysis.understaffed_assignments = sum(1 for a in assignments if a.understaffed)
        
        generated_at = max((a.generated_at for a in assignments if a.generated_at), default=None)
        return StatisticsResult(
            scope=scope,
            period_start=start_date,
            period_end=end_date,
            analysis=analysis,
            generated_at=generated_at,
        )
    
    def optimize(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[QueueChange]:
        """
        Применить рекомендации к очереди через reorder
        
        Вызывается под блокировкой области.
        """
        stats = self.analyze(scope, start_date, end_date)
        current = self.queue_service.sync(scope)
        new_order, changes = apply_recommendations(current, stats.analysis)
        
        if new_order != current:
            self.queue_service.reorder(scope, new_order)
            logger.info(f"Очередь {scope.label} оптимизирована: {len(changes)} изменений")
        else:
            self.db.commit()
            logger.info(f"Очередь {scope.label} не требует оптимизации")
        return changes
