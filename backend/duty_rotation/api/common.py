from fastapi import HTTPException
from sqlalchemy.orm import Session
from typing import Dict, Iterable, List
from duty_rotation.errors import RotationError
from duty_rotation.models import DutyAssignment, Person
from duty_rotation.schemas.rotation import AssignmentPersonInfo, DutyAssignmentOut
from duty_rotation.schemas.scope import ScopeInfo
from duty_rotation.services.scope import Scope


def http_error(e: RotationError) -> HTTPException:
    """Преобразовать ошибку ротации в HTTP-ответ с кодом нарушенного инварианта"""
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def scope_info(scope: Scope) -> ScopeInfo:
    return ScopeInfo(site_id=scope.site_id, sector_id=scope.sector_id, service_id=scope.service_id)


def assignments_to_schema(db: Session, assignments: Iterable[DutyAssignment]) -> List[DutyAssignmentOut]:
    """Добавить к назначениям информацию о сотрудниках"""
    assignments = list(assignments)
    person_ids = {pid for a in assignments for pid in a.person_ids}
    people: Dict[int, Person] = {}
    if person_ids:
        people = {p.id: p for p in db.query(Person).filter(Person.id.in_(person_ids)).all()}
    
    result = []
    for assignment in assignments:
        people_info = []
        for link in assignment.duty_people:
            person = people.get(link.person_id)
            people_info.append(AssignmentPersonInfo(
                person_id=link.person_id,
                person_name=(person.full_name or None) if person else None,
                person_email=person.email if person else None,
                replaces_person_id=link.replaces_person_id,
                note=link.note
            ))
        
        result.append(DutyAssignmentOut(
            id=assignment.id,
            scope=ScopeInfo(
                site_id=assignment.site_id,
                sector_id=assignment.sector_id,
                service_id=assignment.service_id
            ),
            start_date=assignment.start_date,
            end_date=assignment.end_date,
            shift_kind=assignment.shift_kind,
            holiday_name=assignment.holiday_name,
            required_personnel=assignment.required_personnel,
            understaffed=bool(assignment.understaffed),
            people=people_info,
            generated_at=assignment.generated_at,
            updated_at=assignment.updated_at
        ))
    return result
