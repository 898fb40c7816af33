from dataclasses import dataclass
from sqlalchemy.orm import Session
from sqlalchemy import and_, func, or_
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple
from duty_rotation.config import settings
from duty_rotation.errors import (
    AssignmentConflict,
    DuplicateAssignment,
    PersonNotAssigned,
    PersonNotEligible,
    PersonUnavailable,
    StaffingLimitExceeded,
)
from duty_rotation.models import DutyAssignment, DutyAssignmentPerson, Person, ShiftKind
from duty_rotation.services.availability import AvailabilityTracker
from duty_rotation.services.directory import OrgDirectory
from duty_rotation.services.holiday_calendar import HolidayCalendar, load_calendar
from duty_rotation.services.scope import Scope
import logging

logger = logging.getLogger(__name__)


def _scope_filter(scope: Scope):
    if scope.service_id is None:
        return and_(DutyAssignment.sector_id == scope.sector_id, DutyAssignment.service_id.is_(None))
    return and_(DutyAssignment.sector_id == scope.sector_id, DutyAssignment.service_id == scope.service_id)


def _overlaps(start_date: date, end_date: date):
    return and_(DutyAssignment.start_date <= end_date, DutyAssignment.end_date >= start_date)


def _dates_between(start_date: date, end_date: date) -> List[date]:
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


@dataclass(frozen=True)
class AssignmentIssue:
    """Проблема в сохраненном назначении"""
    kind: str  # double_duty, unavailable, not_eligible, understaffed
    assignment_id: int
    start_date: date
    end_date: date
    person_id: Optional[int] = None
    dates: Tuple[date, ...] = ()
    other_assignment_id: Optional[int] = None


class AssignmentService:
    """Сервис для работы с назначениями на дежурство"""
    
    def __init__(self, db: Session, directory: Optional[OrgDirectory] = None, calendar: Optional[HolidayCalendar] = None):
        self.db = db
        self.directory = directory or OrgDirectory(db)
        self._calendar = calendar
    
    @property
    def calendar(self) -> HolidayCalendar:
        if self._calendar is None:
            self._calendar = load_calendar(self.db)
        return self._calendar
    
    def list_assignments(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[DutyAssignment]:
        """
        Получить назначения области с фильтрацией по датам
        
        Args:
            scope: Область ротации
            start_date: Начальная дата (включительно)
            end_date: Конечная дата (включительно)
            
        Returns:
            Назначения, пересекающие период, по возрастанию даты
        """
        query = self.db.query(DutyAssignment).filter(_scope_filter(scope))
        
        if start_date:
            query = query.filter(DutyAssignment.end_date >= start_date)
        if end_date:
            query = query.filter(DutyAssignment.start_date <= end_date)
        
        return query.order_by(DutyAssignment.start_date, DutyAssignment.id).all()
    
    def list_person_assignments(
        self,
        person_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[DutyAssignment]:
        """История дежурств сотрудника во всех областях"""
        query = self.db.query(DutyAssignment).join(DutyAssignmentPerson).filter(
            DutyAssignmentPerson.person_id == person_id
        )
        if start_date:
            query = query.filter(DutyAssignment.end_date >= start_date)
        if end_date:
            query = query.filter(DutyAssignment.start_date <= end_date)
        return query.order_by(DutyAssignment.start_date).all()
    
    def get_assignment_for_date(self, scope: Scope, day: date) -> Optional[DutyAssignment]:
        """Назначение области, покрывающее дату"""
        return self.db.query(DutyAssignment).filter(
            _scope_filter(scope),
            DutyAssignment.start_date <= day,
            DutyAssignment.end_date >= day
        ).order_by(DutyAssignment.start_date).first()
    
    def busy_dates(
        self,
        person_ids: List[int],
        start_date: date,
        end_date: date,
        exclude_scope: Optional[Scope] = None
    ) -> Dict[int, Set[date]]:
        """
        Даты, в которые сотрудники уже дежурят (в других областях, если задан exclude_scope)
        """
        if not person_ids:
            return {}
        
        query = self.db.query(DutyAssignment, DutyAssignmentPerson.person_id).join(DutyAssignmentPerson).filter(
            DutyAssignmentPerson.person_id.in_(person_ids),
            _overlaps(start_date, end_date)
        )
        if exclude_scope is not None:
            if exclude_scope.service_id is None:
                query = query.filter(or_(
                    DutyAssignment.sector_id != exclude_scope.sector_id,
                    DutyAssignment.service_id.isnot(None)
                ))
            else:
                query = query.filter(or_(
                    DutyAssignment.sector_id != exclude_scope.sector_id,
                    DutyAssignment.service_id.is_(None),
                    DutyAssignment.service_id != exclude_scope.service_id
                ))
        
        busy: Dict[int, Set[date]] = {}
        for assignment, person_id in query.all():
            day = max(assignment.start_date, start_date)
            last_day = min(assignment.end_date, end_date)
            dates = busy.setdefault(person_id, set())
            while day <= last_day:
                dates.add(day)
                day += timedelta(days=1)
        return busy
    
    def covering_range(self, scope: Scope, start_date: date, end_date: date) -> Tuple[date, date]:
        """
        Расширить период до границ назначений области, которые его пересекают

        Многодневный блок, начатый до периода или закончившийся после него,
        удаляется при перегенерации целиком, поэтому его дни должны войти
        в новый план.
        """
        while True:
            row = self.db.query(
                func.min(DutyAssignment.start_date),
                func.max(DutyAssignment.end_date)
            ).filter(_scope_filter(scope), _overlaps(start_date, end_date)).one()
            first, last = row
            if first is None:
                return start_date, end_date
            widened_start = min(start_date, first)
            widened_end = max(end_date, last)
            if (widened_start, widened_end) == (start_date, end_date):
                return start_date, end_date
            start_date, end_date = widened_start, widened_end

    def clear_range(self, scope: Scope, start_date: date, end_date: date) -> int:
        """Удалить назначения области, пересекающие период (без commit)"""
        existing = self.db.query(DutyAssignment).filter(
            _scope_filter(scope),
            _overlaps(start_date, end_date)
        ).all()
        for assignment in existing:
            self.db.delete(assignment)
        self.db.flush()
        return len(existing)
    
    def _check_can_join(self, scope: Scope, day: date, person_id: int, assignment: Optional[DutyAssignment]) -> None:
        """Проверить, что сотрудника можно поставить на назначение (или на новую однодневку)"""
        person = self.directory.get_person(person_id)
        if not self.directory.is_eligible(person, scope):
            raise PersonNotEligible(f"Сотрудник {person_id} не допущен к ротации этой области", scope=scope)

        start_date = assignment.start_date if assignment else day
        end_date = assignment.end_date if assignment else day

        if assignment and person_id in assignment.person_ids:
            raise DuplicateAssignment(f"Сотрудник {person_id} уже дежурит {day.isoformat()}", scope=scope)

        tracker = AvailabilityTracker.from_db(self.db, [person_id], start_date, end_date)
        blocked = sorted(tracker.unavailable_dates(person_id))
        if blocked:
            raise PersonUnavailable(
                f"Сотрудник {person_id} отсутствует: {', '.join(d.isoformat() for d in blocked)}",
                scope=scope
            )

        busy = self.busy_dates([person_id], start_date, end_date)
        if busy.get(person_id):
            raise AssignmentConflict(
                f"Сотрудник {person_id} уже назначен на пересекающееся дежурство "
                f"({', '.join(d.isoformat() for d in sorted(busy[person_id]))})",
                scope=scope
            )

    def add_person_to_date(
        self,
        scope: Scope,
        day: date,
        person_id: int,
        shift_kind: Optional[ShiftKind] = None,
        min_personnel: Optional[int] = None
    ) -> DutyAssignment:
        """
        Ручное добавление сотрудника на дату
        
        Если на дату нет назначения, создается однодневное. Действуют те же
        инварианты, что и при генерации: без дублей, не больше требуемого
        числа дежурных, без пересечения с другими дежурствами сотрудника.
        """
        assignment = self.get_assignment_for_date(scope, day)
        self._check_can_join(scope, day, person_id, assignment)

        if assignment is None:
            classification = self.calendar.classify(day)
            if classification.is_holiday:
                kind = ShiftKind.HOLIDAY
            elif classification.is_weekend:
                kind = ShiftKind.WEEKEND
            else:
                kind = shift_kind or ShiftKind.DAY
            assignment = DutyAssignment(
                site_id=scope.site_id,
                sector_id=scope.sector_id,
                service_id=scope.service_id,
                start_date=day,
                end_date=day,
                shift_kind=kind,
                holiday_name=classification.holiday_name,
                required_personnel=min_personnel or settings.default_min_personnel,
                understaffed=True
            )
            self.db.add(assignment)
            self.db.flush()
        elif len(assignment.duty_people) >= assignment.required_personnel:
            raise StaffingLimitExceeded(
                f"На {day.isoformat()} уже назначено {len(assignment.duty_people)} из "
                f"{assignment.required_personnel} требуемых дежурных",
                scope=scope
            )
        
        assignment.duty_people.append(DutyAssignmentPerson(person_id=person_id))
        assignment.understaffed = len(assignment.duty_people) < assignment.required_personnel
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"Сотрудник {person_id} добавлен на дежурство {day.isoformat()} в {scope.label}")
        return assignment
    
    def remove_person_from_date(self, scope: Scope, day: date, person_id: int) -> DutyAssignment:
        """Ручное снятие сотрудника с дежурства; назначение остается и помечается неполным"""
        assignment = self.get_assignment_for_date(scope, day)
        if assignment is None:
            raise PersonNotAssigned(f"На {day.isoformat()} нет назначения", scope=scope)
        
        link = next((dp for dp in assignment.duty_people if dp.person_id == person_id), None)
        if link is None:
            raise PersonNotAssigned(f"Сотрудник {person_id} не дежурит {day.isoformat()}", scope=scope)
        
        assignment.duty_people.remove(link)
        assignment.understaffed = len(assignment.duty_people) < assignment.required_personnel
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"Сотрудник {person_id} снят с дежурства {day.isoformat()} в {scope.label}")
        return assignment
    
    def replace_person_on_date(
        self,
        scope: Scope,
        day: date,
        person_id: int,
        replacement_id: int,
        reason: Optional[str] = None
    ) -> DutyAssignment:
        """
        Заменить дежурного на дату другим сотрудником
        
        Заменяющий проходит те же проверки, что и при ручном добавлении.
        Замена выполняется одной транзакцией: место в назначении не
        освобождается, если заменяющего поставить нельзя.
        """
        assignment = self.get_assignment_for_date(scope, day)
        if assignment is None:
            raise PersonNotAssigned(f"На {day.isoformat()} нет назначения", scope=scope)
        
        link = next((dp for dp in assignment.duty_people if dp.person_id == person_id), None)
        if link is None:
            raise PersonNotAssigned(f"Сотрудник {person_id} не дежурит {day.isoformat()}", scope=scope)
        
        self._check_can_join(scope, day, replacement_id, assignment)
        
        link.person_id = replacement_id
        link.replaces_person_id = person_id
        link.note = reason or "Замена"
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(
            f"Сотрудник {person_id} заменен на {replacement_id} в дежурстве "
            f"{assignment.start_date.isoformat()}..{assignment.end_date.isoformat()} {scope.label}: {link.note}"
        )
        return assignment
    
    def replacement_candidates(
        self,
        scope: Scope,
        absent_person_id: int,
        start_date: date,
        end_date: date,
        order: Sequence[int]
    ) -> List[Person]:
        """
        Кто может заменить отсутствующего сотрудника, в порядке очереди
        
        Проверяются дни, в которые отсутствующий дежурит в области в течение
        периода; если таких нет, проверяется весь период. Кандидат должен быть
        допущен к ротации, не отсутствовать и не дежурить в эти дни.
        """
        own_dates: Set[date] = set()
        for assignment in self.list_assignments(scope, start_date, end_date):
            if absent_person_id in assignment.person_ids:
                own_dates.update(_dates_between(
                    max(assignment.start_date, start_date),
                    min(assignment.end_date, end_date)
                ))
        days = sorted(own_dates) or _dates_between(start_date, end_date)
        
        eligible = {person.id: person for person in self.directory.list_eligible_people(scope)}
        candidate_ids = [pid for pid in order if pid != absent_person_id and pid in eligible]
        tracker = AvailabilityTracker.from_db(self.db, candidate_ids, start_date, end_date).with_blocked(
            self.busy_dates(candidate_ids, start_date, end_date)
        )
        return [eligible[pid] for pid in candidate_ids if tracker.is_available_for(pid, days)]
    
    def conflict_report(self, scope: Scope, start_date: date, end_date: date) -> List[AssignmentIssue]:
        """
        Проблемы в сохраненных назначениях области за период
        
        double_duty - сотрудник одновременно дежурит в другом назначении,
        unavailable - дежурство попадает на блокирующее отсутствие,
        not_eligible - сотрудник больше не допущен к ротации области,
        understaffed - дежурных меньше требуемого.
        """
        assignments = self.list_assignments(scope, start_date, end_date)
        in_scope = {a.id for a in assignments}
        person_ids = sorted({pid for a in assignments for pid in a.person_ids})
        if assignments:
            window_start = min(a.start_date for a in assignments)
            window_end = max(a.end_date for a in assignments)
        else:
            window_start, window_end = start_date, end_date
        tracker = AvailabilityTracker.from_db(self.db, person_ids, window_start, window_end)
        people = {p.id: p for p in self.db.query(Person).filter(Person.id.in_(person_ids)).all()} if person_ids else {}
        
        issues: List[AssignmentIssue] = []
        for assignment in assignments:
            if len(assignment.duty_people) < assignment.required_personnel:
                issues.append(AssignmentIssue("understaffed", assignment.id, assignment.start_date, assignment.end_date))
            
            for pid in assignment.person_ids:
                person = people.get(pid)
                if person is None or not self.directory.is_eligible(person, scope):
                    issues.append(AssignmentIssue(
                        "not_eligible", assignment.id, assignment.start_date, assignment.end_date, person_id=pid
                    ))
                
                blocked = tuple(sorted(
                    d for d in tracker.unavailable_dates(pid)
                    if assignment.start_date <= d <= assignment.end_date
                ))
                if blocked:
                    issues.append(AssignmentIssue(
                        "unavailable", assignment.id, assignment.start_date, assignment.end_date,
                        person_id=pid, dates=blocked
                    ))
                
                others = self.db.query(DutyAssignment).join(DutyAssignmentPerson).filter(
                    DutyAssignmentPerson.person_id == pid,
                    DutyAssignment.id != assignment.id,
                    _overlaps(assignment.start_date, assignment.end_date)
                ).order_by(DutyAssignment.start_date, DutyAssignment.id).all()
                for other in others:
                    # Пара внутри области попадает в отчет один раз
                    if other.id in in_scope and other.id < assignment.id:
                        continue
                    issues.append(AssignmentIssue(
                        "double_duty", assignment.id, assignment.start_date, assignment.end_date,
                        person_id=pid,
                        dates=tuple(_dates_between(
                            max(assignment.start_date, other.start_date),
                            min(assignment.end_date, other.end_date)
                        )),
                        other_assignment_id=other.id
                    ))
        
        if issues:
            logger.warning(f"В назначениях {scope.label} найдено проблем: {len(issues)}")
        return issues
