from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from duty_rotation.database import get_db
from duty_rotation.errors import RotationError
from duty_rotation.schemas.rotation import (
    AssignmentIssueOut,
    CandidateOut,
    ConflictReportResponse,
    DutyAssignmentOut,
    PersonDateRequest,
    ReplacePersonRequest,
    ReplacementCandidatesResponse,
)
from duty_rotation.services.rotation_service import RotationService
from duty_rotation.auth.dependencies import get_rotation_service
from duty_rotation.api.common import assignments_to_schema, http_error, scope_info
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


@router.get("", response_model=List[DutyAssignmentOut])
def list_assignments(
    sector_id: int = Query(..., description="ID сектора"),
    service_id: Optional[int] = Query(None, description="ID службы"),
    start_date: Optional[date] = Query(None, description="Начальная дата"),
    end_date: Optional[date] = Query(None, description="Конечная дата"),
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Получить назначения области за период"""
    try:
        scope = service.resolve_scope(sector_id, service_id)
        assignments = service.list_assignments(scope, start_date, end_date)
        return assignments_to_schema(db, assignments)
    except RotationError as e:
        raise http_error(e)


@router.get("/person/{person_id}", response_model=List[DutyAssignmentOut])
def get_person_assignments(
    person_id: int,
    start_date: Optional[date] = Query(None, description="Начальная дата"),
    end_date: Optional[date] = Query(None, description="Конечная дата"),
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """История дежурств сотрудника во всех доступных областях"""
    try:
        assignments = service.person_history(person_id, start_date, end_date)
        return assignments_to_schema(db, assignments)
    except RotationError as e:
        raise http_error(e)


@router.post("/add-person", response_model=DutyAssignmentOut)
def add_person_to_date(
    data: PersonDateRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Вручную назначить сотрудника на дату"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        assignment = service.add_person_to_date(
            scope, data.date, data.person_id, data.shift_kind, data.min_personnel
        )
        return assignments_to_schema(db, [assignment])[0]
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Ошибка при добавлении сотрудника {data.person_id} на {data.date}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка добавления сотрудника: {str(e)}")


@router.post("/remove-person", response_model=DutyAssignmentOut)
def remove_person_from_date(
    data: PersonDateRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Снять сотрудника с дежурства на дату"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        assignment = service.remove_person_from_date(scope, data.date, data.person_id)
        return assignments_to_schema(db, [assignment])[0]
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Ошибка при снятии сотрудника {data.person_id} с {data.date}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка снятия сотрудника: {str(e)}")


@router.post("/replace-person", response_model=DutyAssignmentOut)
def replace_person_on_date(
    data: ReplacePersonRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Заменить дежурного на дату другим сотрудником с указанием причины"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        assignment = service.replace_person_on_date(
            scope, data.date, data.person_id, data.replacement_id, data.reason
        )
        return assignments_to_schema(db, [assignment])[0]
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(
            f"Ошибка при замене сотрудника {data.person_id} на {data.replacement_id} ({data.date}): {e}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail=f"Ошибка замены сотрудника: {str(e)}")


@router.get("/replacements/{unavailability_id}", response_model=ReplacementCandidatesResponse)
def get_replacement_candidates(
    unavailability_id: int,
    service: RotationService = Depends(get_rotation_service)
):
    """Кто может заменить сотрудника на время отсутствия (в порядке очереди)"""
    try:
        result = service.replacement_candidates(unavailability_id)
    except RotationError as e:
        raise http_error(e)
    
    leave = result.unavailability
    return ReplacementCandidatesResponse(
        scope=scope_info(result.scope),
        unavailability_id=leave.id,
        person_id=leave.person_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
        candidates=[
            CandidateOut(person_id=p.id, person_name=p.full_name or None, person_email=p.email)
            for p in result.candidates
        ]
    )


@router.get("/conflicts", response_model=ConflictReportResponse)
def get_conflicts(
    sector_id: int = Query(..., description="ID сектора"),
    service_id: Optional[int] = Query(None, description="ID службы"),
    start_date: date = Query(..., description="Начальная дата"),
    end_date: date = Query(..., description="Конечная дата"),
    service: RotationService = Depends(get_rotation_service)
):
    """Отчет о проблемах в назначениях области: двойные дежурства, отсутствия, нехватка"""
    try:
        scope = service.resolve_scope(sector_id, service_id)
        issues = service.conflict_report(scope, start_date, end_date)
    except RotationError as e:
        raise http_error(e)
    
    return ConflictReportResponse(
        scope=scope_info(scope),
        start_date=start_date,
        end_date=end_date,
        issues=[
            AssignmentIssueOut(
                kind=issue.kind,
                assignment_id=issue.assignment_id,
                start_date=issue.start_date,
                end_date=issue.end_date,
                person_id=issue.person_id,
                dates=list(issue.dates),
                other_assignment_id=issue.other_assignment_id
            )
            for issue in issues
        ]
    )
