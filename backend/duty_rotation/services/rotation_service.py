from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from duty_rotation.errors import UnavailabilityNotFound
from duty_rotation.models import DutyAssignment, Person, ShiftKind, Unavailability
from duty_rotation.services.assignment_service import AssignmentIssue, AssignmentService
from duty_rotation.services.authorization import AccessLevel, Caller, require_manage, require_read, resolve_access
from duty_rotation.services.directory import OrgDirectory
from duty_rotation.services.rotation_engine import GenerationResult, RotationEngine
from duty_rotation.services.rotation_queue import RotationQueueService
from duty_rotation.services.scope import Scope
from duty_rotation.services.scope_lock import scope_locks
from duty_rotation.services.statistics import QueueChange, StatisticsResult, StatisticsService
import logging

logger = logging.getLogger(__name__)


@dataclass
class ReplacementCandidates:
    scope: Scope
    unavailability: Unavailability
    candidates: List[Person]


class RotationService:
    """
    Точка входа для операций ротации от имени вызывающего
    
    Каждая изменяющая операция требует доступа Manage к области и
    выполняется под блокировкой области; операции чтения требуют Manage
    или Read и идут без блокировки.
    """
    
    def __init__(self, db: Session, caller: Caller):
        self.db = db
        self.caller = caller
        self.directory = OrgDirectory(db)
    
    def resolve_scope(self, sector_id: int, service_id: Optional[int] = None) -> Scope:
        return self.directory.resolve_scope(sector_id, service_id)
    
    def access_level(self, scope: Scope) -> AccessLevel:
        return resolve_access(self.caller, scope)
    
    # Изменяющие операции
    
    def generate_rotation(
        self,
        scope: Scope,
        start_date: date,
        end_date: date,
        min_personnel: Optional[int] = None,
        should_abort: Optional[Callable[[], bool]] = None
    ) -> GenerationResult:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return RotationEngine(self.db, self.directory).generate(
                scope, start_date, end_date, min_personnel, should_abort
            )
    
    def reorder_rotation(self, scope: Scope, new_order: List[int]) -> List[int]:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return RotationQueueService(self.db, self.directory).reorder(scope, new_order)
    
    def move_to_end_of_rotation(self, scope: Scope, person_id: int) -> List[int]:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return RotationQueueService(self.db, self.directory).move_to_end(scope, person_id)
    
    def optimize_rotation(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[QueueChange]:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return StatisticsService(self.db, self.directory).optimize(scope, start_date, end_date)
    
    def add_person_to_date(
        self,
        scope: Scope,
        day: date,
        person_id: int,
        shift_kind: Optional[ShiftKind] = None,
        min_personnel: Optional[int] = None
    ) -> DutyAssignment:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return AssignmentService(self.db, self.directory).add_person_to_date(
                scope, day, person_id, shift_kind, min_personnel
            )
    
    def remove_person_from_date(self, scope: Scope, day: date, person_id: int) -> DutyAssignment:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return AssignmentService(self.db, self.directory).remove_person_from_date(scope, day, person_id)
    
    def replace_person_on_date(
        self,
        scope: Scope,
        day: date,
        person_id: int,
        replacement_id: int,
        reason: Optional[str] = None
    ) -> DutyAssignment:
        require_manage(self.caller, scope)
        with scope_locks.hold(scope):
            return AssignmentService(self.db, self.directory).replace_person_on_date(
                scope, day, person_id, replacement_id, reason
            )
    
    # Чтение
    
    def get_queue(self, scope: Scope) -> List[int]:
        require_read(self.caller, scope)
        return RotationQueueService(self.db, self.directory).get(scope)
    
    def get_statistics(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> StatisticsResult:
        require_read(self.caller, scope)
        return StatisticsService(self.db, self.directory).analyze(scope, start_date, end_date)
    
    def list_assignments(
        self,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[DutyAssignment]:
        require_read(self.caller, scope)
        return AssignmentService(self.db, self.directory).list_assignments(scope, start_date, end_date)
    
    def person_history(
        self,
        person_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[DutyAssignment]:
        """Дежурства сотрудника в тех областях, которые вызывающий может читать"""
        self.directory.get_person(person_id)
        assignments = AssignmentService(self.db, self.directory).list_person_assignments(person_id, start_date, end_date)
        return [
            a for a in assignments
            if resolve_access(self.caller, self.directory.scope_of_assignment(a)) != AccessLevel.DENIED
            or person_id == self.caller.person_id
        ]
    
    def replacement_candidates(self, unavailability_id: int) -> ReplacementCandidates:
        """Кандидаты на замену сотрудника на время его отсутствия"""
        leave = self.db.query(Unavailability).filter(Unavailability.id == unavailability_id).first()
        if not leave:
            raise UnavailabilityNotFound(f"Отсутствие {unavailability_id} не найдено")
        
        scope = self.directory.rotation_scope_of_person(self.directory.get_person(leave.person_id))
        require_read(self.caller, scope)
        order = RotationQueueService(self.db, self.directory).get(scope)
        candidates = AssignmentService(self.db, self.directory).replacement_candidates(
            scope, leave.person_id, leave.start_date, leave.end_date, order
        )
        return ReplacementCandidates(scope=scope, unavailability=leave, candidates=candidates)
    
    def conflict_report(self, scope: Scope, start_date: date, end_date: date) -> List[AssignmentIssue]:
        require_read(self.caller, scope)
        return AssignmentService(self.db, self.directory).conflict_report(scope, start_date, end_date)
