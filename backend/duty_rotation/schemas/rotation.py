from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from typing import List, Optional
from duty_rotation.models import ShiftKind
from duty_rotation.schemas.scope import ScopeInfo, ScopeRef


class GenerateRotationRequest(ScopeRef):
    """Схема запроса генерации ротации"""
    start_date: date
    end_date: date
    min_personnel: Optional[int] = Field(None, ge=1)
    
    @model_validator(mode="after")
    def check_period(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date должна быть не раньше start_date")
        return self


class ReorderRotationRequest(ScopeRef):
    """Схема для изменения порядка очереди"""
    person_ids: List[int]  # Список ID сотрудников в новом порядке


class MoveToEndRequest(ScopeRef):
    person_id: int


class OptimizeRotationRequest(ScopeRef):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PersonDateRequest(ScopeRef):
    """Ручное добавление/снятие сотрудника на дату"""
    date: date
    person_id: int
    shift_kind: Optional[ShiftKind] = None
    min_personnel: Optional[int] = Field(None, ge=1)


class ReplacePersonRequest(ScopeRef):
    """Замена дежурного на дату"""
    date: date
    person_id: int
    replacement_id: int
    reason: Optional[str] = Field(None, max_length=500)


class AssignmentPersonInfo(BaseModel):
    person_id: int
    person_name: Optional[str] = None
    person_email: Optional[str] = None
    replaces_person_id: Optional[int] = None
    note: Optional[str] = None


class DutyAssignmentOut(BaseModel):
    id: int
    scope: ScopeInfo
    start_date: date
    end_date: date
    shift_kind: ShiftKind
    holiday_name: Optional[str] = None
    required_personnel: int
    understaffed: bool
    people: List[AssignmentPersonInfo]
    generated_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QueueOut(BaseModel):
    scope: ScopeInfo
    person_ids: List[int]


class GenerateRotationResponse(BaseModel):
    scope: ScopeInfo
    start_date: date
    end_date: date
    assignments: List[DutyAssignmentOut]
    understaffed_dates: List[date]
    queue: List[int]
    generated_at: datetime


class QueueChangeOut(BaseModel):
    action: str
    person_ids: List[int]
    description: str


class OptimizeRotationResponse(BaseModel):
    scope: ScopeInfo
    applied_changes: List[QueueChangeOut]
    queue: List[int]


class CandidateOut(BaseModel):
    person_id: int
    person_name: Optional[str] = None
    person_email: Optional[str] = None


class ReplacementCandidatesResponse(BaseModel):
    scope: ScopeInfo
    unavailability_id: int
    person_id: int
    start_date: date
    end_date: date
    candidates: List[CandidateOut]


class AssignmentIssueOut(BaseModel):
    kind: str
    assignment_id: int
    start_date: date
    end_date: date
    person_id: Optional[int] = None
    dates: List[date] = []
    other_assignment_id: Optional[int] = None


class ConflictReportResponse(BaseModel):
    scope: ScopeInfo
    start_date: date
    end_date: date
    issues: List[AssignmentIssueOut]
