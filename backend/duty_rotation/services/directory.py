from typing import List, Optional
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.errors import InvalidScope, PersonNotFound, ScopeNotFound
from duty_rotation.models import Person, PersonRole, Sector, Service
from duty_rotation.services.scope import Scope


class OrgDirectory:
    """Справочник оргструктуры: области ротации и сотрудники (только чтение)"""
    
    def __init__(self, db: Session):
        self.db = db
    
    def resolve_scope(self, sector_id: int, service_id: Optional[int] = None) -> Scope:
        """
        Построить область ротации по сектору и (необязательно) службе
        
        Raises:
            ScopeNotFound: сектор не существует или служба не принадлежит сектору
        """
        sector = self.db.query(Sector).filter(Sector.id == sector_id).first()
        if not sector:
            raise ScopeNotFound(f"Сектор {sector_id} не найден")
        
        if service_id is not None:
            service = self.db.query(Service).filter(Service.id == service_id).first()
            if not service:
                raise ScopeNotFound(f"Служба {service_id} не найдена")
            if service.sector_id != sector.id:
                raise ScopeNotFound(f"Служба {service_id} не принадлежит сектору {sector_id}")
        
        return Scope(site_id=sector.site_id, sector_id=sector.id, service_id=service_id)
    
    def scope_of_assignment(self, assignment) -> Scope:
        return Scope(
            site_id=assignment.site_id,
            sector_id=assignment.sector_id,
            service_id=assignment.service_id
        )
    
    def rotation_scope_of_person(self, person: Person) -> Scope:
        """Область, в ротации которой участвует сотрудник по своей роли"""
        if person.role == PersonRole.SECTOR_ENGINEER and person.sector_id is not None:
            return self.resolve_scope(person.sector_id)
        if person.role in (PersonRole.SERVICE_COLLABORATOR, PersonRole.SERVICE_CHIEF) and person.service_id is not None:
            return self.resolve_scope(person.sector_id, person.service_id)
        raise InvalidScope(f"Сотрудник {person.id} не участвует в ротации")
    
    def eligible_roles(self, scope: Scope) -> List[PersonRole]:
        """Инженеры дежурят на уровне сектора, сотрудники служб - на уровне службы"""
        if not scope.is_service_level:
            return [PersonRole.SECTOR_ENGINEER]
        roles = [PersonRole.SERVICE_COLLABORATOR]
        if settings.include_service_chief_in_rotation:
            roles.append(PersonRole.SERVICE_CHIEF)
        return roles
    
    def list_eligible_people(self, scope: Scope) -> List[Person]:
        """Активные сотрудники, допущенные к ротации в области, в порядке справочника"""
        query = self.db.query(Person).filter(
            Person.active == True,
            Person.role.in_(self.eligible_roles(scope)),
            Person.sector_id == scope.sector_id
        )
        if scope.is_service_level:
            query = query.filter(Person.service_id == scope.service_id)
        return query.order_by(Person.id).all()
    
    def is_eligible(self, person: Person, scope: Scope) -> bool:
        if not person.active or person.role not in self.eligible_roles(scope):
            return False
        if person.sector_id != scope.sector_id:
            return False
        return not scope.is_service_level or person.service_id == scope.service_id
    
    def get_person(self, person_id: int) -> Person:
        person = self.db.query(Person).filter(Person.id == person_id).first()
        if not person:
            raise PersonNotFound(f"Сотрудник {person_id} не найден")
        return person
