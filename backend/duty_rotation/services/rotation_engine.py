"""
Генератор ротации дежурств на выходные и праздничные дни.

Алгоритм:
1. Все даты периода классифицируются календарем; остаются выходные и
   праздники. Подряд идущие такие даты образуют блок (суббота и
   воскресенье, праздник рядом с выходными) и покрываются одним
   назначением.
2. Для каждого блока по порядку очереди отбираются сотрудники, доступные
   во все дни блока. При равенстве предпочтение тем, кто реже дежурил в
   текущем прогоне, затем позиции в очереди.
3. Если доступных меньше требуемого, назначаются все доступные, блок
   помечается неполным. Многодневный блок в этом случае сначала
   разбивается на отдельные дни.
4. Назначенные сотрудники уходят в конец очереди.
5. Назначения области в периоде заменяются одной транзакцией.
"""
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.errors import GenerationAborted, InvalidPeriod, InvalidScope
from duty_rotation.models import DutyAssignment, DutyAssignmentPerson, ShiftKind
from duty_rotation.services.assignment_service import AssignmentService
from duty_rotation.services.availability import AvailabilityTracker
from duty_rotation.services.directory import OrgDirectory
from duty_rotation.services.holiday_calendar import DayClassification, HolidayCalendar, load_calendar
from duty_rotation.services.rotation_queue import RotationQueueService, advance, move_to_end
from duty_rotation.services.scope import Scope
import logging

logger = logging.getLogger(__name__)


@dataclass
class DutyBlock:
    """Непрерывная последовательность дней, требующих дежурства"""
    days: List[DayClassification]
    
    @property
    def dates(self) -> List[date]:
        return [day.date for day in self.days]
    
    @property
    def start_date(self) -> date:
        return self.days[0].date
    
    @property
    def end_date(self) -> date:
        return self.days[-1].date
    
    @property
    def shift_kind(self) -> ShiftKind:
        return ShiftKind.HOLIDAY if any(day.is_holiday for day in self.days) else ShiftKind.WEEKEND
    
    @property
    def holiday_name(self) -> Optional[str]:
        names = []
        for day in self.days:
            if day.holiday_name and day.holiday_name not in names:
                names.append(day.holiday_name)
        return " / ".join(names) or None
    
    def split(self) -> List["DutyBlock"]:
        return [DutyBlock([day]) for day in self.days]


@dataclass
class PlannedAssignment:
    start_date: date
    end_date: date
    shift_kind: ShiftKind
    holiday_name: Optional[str]
    person_ids: List[int]
    required_personnel: int
    
    @property
    def understaffed(self) -> bool:
        return len(self.person_ids) < self.required_personnel
    
    @property
    def dates(self) -> List[date]:
        return [self.start_date + timedelta(days=i) for i in range((self.end_date - self.start_date).days + 1)]


@dataclass
class RotationPlan:
    assignments: List[PlannedAssignment]
    final_order: List[int]
    
    @property
    def understaffed_dates(self) -> List[date]:
        return [day for planned in self.assignments if planned.understaffed for day in planned.dates]


@dataclass
class GenerationResult:
    scope: Scope
    start_date: date
    end_date: date
    assignments: List[DutyAssignment]
    understaffed_dates: List[date]
    queue_order: List[int]
    generated_at: datetime = field(default_factory=datetime.now)


def duty_blocks(calendar: HolidayCalendar, start_date: date, end_date: date) -> List[DutyBlock]:
    """Разбить период на блоки подряд идущих выходных и праздничных дней"""
    blocks: List[DutyBlock] = []
    current: List[DayClassification] = []
    day = start_date
    while day <= end_date:
        classification = calendar.classify(day)
        if classification.is_duty_day:
            current.append(classification)
        elif current:
            blocks.append(DutyBlock(current))
            current = []
        day += timedelta(days=1)
    if current:
        blocks.append(DutyBlock(current))
    return blocks


def plan_rotation(
    order: Sequence[int],
    blocks: Sequence[DutyBlock],
    availability: AvailabilityTracker,
    min_personnel: int,
    should_abort: Optional[Callable[[], bool]] = None
) -> RotationPlan:
    """
    Распределить сотрудников по блокам (без побочных эффектов)
    
    Args:
        order: Очередь ротации от головы к хвосту
        blocks: Блоки дежурных дней в хронологическом порядке
        availability: Трекер недоступности
        min_personnel: Требуемое число дежурных на блок
        should_abort: Проверка отмены, вызывается перед каждым блоком
        
    Returns:
        План назначений и итоговый порядок очереди
    """
    queue = list(order)
    usage: Counter = Counter()
    planned: List[PlannedAssignment] = []
    pending = deque(blocks)
    
    while pending:
        if should_abort is not None and should_abort():
            raise GenerationAborted("Генерация прервана вызывающим")
        
        block = pending.popleft()
        candidates = [pid for pid in queue if availability.is_available_for(pid, block.dates)]
        
        if len(candidates) < min_personnel and len(block.days) > 1:
            pending.extendleft(reversed(block.split()))
            continue
        
        position = {pid: index for index, pid in enumerate(queue)}
        ranked = sorted(candidates, key=lambda pid: (usage[pid], position[pid]))
        selected = sorted(ranked[:min_personnel], key=lambda pid: position[pid])
        
        for pid in selected:
            usage[pid] += 1
        
        if selected == queue[:len(selected)]:
            queue = advance(queue, len(selected))
        else:
            for pid in selected:
                queue = move_to_end(queue, pid)
        
        planned.append(PlannedAssignment(
            start_date=block.start_date,
            end_date=block.end_date,
            shift_kind=block.shift_kind,
            holiday_name=block.holiday_name,
            person_ids=selected,
            required_personnel=min_personnel,
        ))
        
        if len(selected) < min_personnel:
            logger.warning(
                f"Неполное дежурство {block.start_date.isoformat()}..{block.end_date.isoformat()}: "
                f"доступно {len(selected)} из {min_personnel}"
            )
    
    return RotationPlan(assignments=planned, final_order=queue)


class RotationEngine:
    """Генерация и сохранение ротации для области"""
    
    def __init__(self, db: Session, directory: Optional[OrgDirectory] = None, calendar: Optional[HolidayCalendar] = None):
        self.db = db
        self.directory = directory or OrgDirectory(db)
        self.calendar = calendar if calendar is not None else load_calendar(db)
        self.queue_service = RotationQueueService(db, self.directory)
        self.assignment_service = AssignmentService(db, self.directory, self.calendar)
    
    def generate(
        self,
        scope: Scope,
        start_date: date,
        end_date: date,
        min_personnel: Optional[int] = None,
        should_abort: Optional[Callable[[], bool]] = None
    ) -> GenerationResult:
        """
        Сгенерировать ротацию на период и заменить ею прежние назначения
        
        Вызывается под блокировкой области. Неполные дни не прерывают
        генерацию и возвращаются в understaffed_dates.
        
        Raises:
            InvalidPeriod: некорректный период или число дежурных
            InvalidScope: в области нет допущенных сотрудников
            GenerationAborted: вызывающий отменил запрос, ничего не сохранено
        """
        min_personnel = min_personnel or settings.default_min_personnel
        if min_personnel < 1:
            raise InvalidPeriod("Число дежурных должно быть не меньше 1", scope=scope)
        if end_date < start_date:
            raise InvalidPeriod("Дата окончания раньше даты начала", scope=scope)
        if (end_date - start_date).days + 1 > settings.max_generation_days:
            raise InvalidPeriod(f"Период длиннее {settings.max_generation_days} дней", scope=scope)
        
        try:
            order = self.queue_service.sync(scope)
            if not order:
                raise InvalidScope("В области нет сотрудников, допущенных к ротации", scope=scope)

            requested = (start_date, end_date)
            start_date, end_date = self.assignment_service.covering_range(scope, start_date, end_date)
            if (start_date, end_date) != requested:
                logger.info(
                    f"Период {scope.label} расширен до {start_date.isoformat()}..{end_date.isoformat()} "
                    f"по границам существующих назначений"
                )

            availability = AvailabilityTracker.from_db(self.db, order, start_date, end_date).with_blocked(
                self.assignment_service.busy_dates(order, start_date, end_date, exclude_scope=scope)
            )
            blocks = duty_blocks(self.calendar, start_date, end_date)
            plan = plan_rotation(order, blocks, availability, min_personnel, should_abort)
            
            removed = self.assignment_service.clear_range(scope, start_date, end_date)
            created: List[DutyAssignment] = []
            for planned in plan.assignments:
                assignment = DutyAssignment(
                    site_id=scope.site_id,
                    sector_id=scope.sector_id,
                    service_id=scope.service_id,
                    start_date=planned.start_date,
                    end_date=planned.end_date,
                    shift_kind=planned.shift_kind,
                    holiday_name=planned.holiday_name,
                    required_personnel=planned.required_personnel,
                    understaffed=planned.understaffed,
                    duty_people=[DutyAssignmentPerson(person_id=pid) for pid in planned.person_ids],
                )
                self.db.add(assignment)
                created.append(assignment)
            
            self.queue_service.save_order(scope, plan.final_order)
            
            if should_abort is not None and should_abort():
                raise GenerationAborted("Генерация прервана вызывающим", scope=scope)
            
            self.db.commit()
        except GenerationAborted as e:
            self.db.rollback()
            e.scope = scope
            logger.warning(f"Генерация {scope.label} прервана, изменения откатаны")
            raise
        except Exception:
            self.db.rollback()
            raise
        
        for assignment in created:
            self.db.refresh(assignment)
        
        understaffed_dates = plan.understaffed_dates
        logger.info(
            f"Сгенерирована ротация {scope.label} на {start_date.isoformat()}..{end_date.isoformat()}: "
            f"{len(created)} назначений (удалено прежних: {removed}), неполных дней: {len(understaffed_dates)}"
        )
        return GenerationResult(
            scope=scope,
            start_date=start_date,
            end_date=end_date,
            assignments=created,
            understaffed_dates=understaffed_dates,
            queue_order=plan.final_order,
        )
