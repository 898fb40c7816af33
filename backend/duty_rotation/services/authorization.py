"""
Разрешение прав доступа к области ротации.

Единственное место, где роль вызывающего сопоставляется с областью:
руководитель управляет своим подразделением и только наблюдает за
соседними. Права на изменение никогда не пересекают границу
подразделения, кроме роли admin.

    Роль                  Управление                    Только чтение
    admin                 все области                   -
    sector_chief          ротация инженеров сектора     службы своего сектора,
                                                        другие секторы площадки
    sector_engineer       -                             свой сектор
    service_chief         ротация своей службы          другие службы сектора
    service_collaborator  -                             своя служба
"""
from dataclasses import dataclass
from typing import Optional
from duty_rotation.errors import Forbidden
from duty_rotation.models import Person, PersonRole
from duty_rotation.services.scope import Scope
import enum
import logging

logger = logging.getLogger(__name__)


class AccessLevel(str, enum.Enum):
    MANAGE = "manage"
    READ = "read"
    DENIED = "denied"


@dataclass(frozen=True)
class Caller:
    """Вызывающий и его положение в оргструктуре"""
    person_id: int
    role: PersonRole
    site_id: int
    sector_id: Optional[int] = None
    service_id: Optional[int] = None
    
    @classmethod
    def from_person(cls, person: Person) -> "Caller":
        return cls(
            person_id=person.id,
            role=PersonRole(person.role),
            site_id=person.site_id,
            sector_id=person.sector_id,
            service_id=person.service_id,
        )


def resolve_access(caller: Caller, scope: Scope) -> AccessLevel:
    if caller.role == PersonRole.ADMIN:
        return AccessLevel.MANAGE
    
    same_sector = caller.sector_id is not None and caller.sector_id == scope.sector_id
    
    if caller.role == PersonRole.SECTOR_CHIEF:
        if same_sector:
            return AccessLevel.READ if scope.is_service_level else AccessLevel.MANAGE
        if caller.site_id == scope.site_id:
            return AccessLevel.READ
        return AccessLevel.DENIED
    
    if caller.role == PersonRole.SECTOR_ENGINEER:
        return AccessLevel.READ if same_sector else AccessLevel.DENIED
    
    if caller.role == PersonRole.SERVICE_CHIEF:
        if not scope.is_service_level or not same_sector:
            return AccessLevel.DENIED
        if caller.service_id == scope.service_id:
            return AccessLevel.MANAGE
        return AccessLevel.READ
    
    if caller.role == PersonRole.SERVICE_COLLABORATOR:
        if scope.is_service_level and caller.service_id == scope.service_id:
            return AccessLevel.READ
        return AccessLevel.DENIED
    
    return AccessLevel.DENIED


def require_manage(caller: Caller, scope: Scope) -> None:
    """Проверка перед любой изменяющей операцией"""
    level = resolve_access(caller, scope)
    if level != AccessLevel.MANAGE:
        logger.warning(
            f"Отказ в изменении: сотрудник {caller.person_id} ({caller.role.value}) "
            f"имеет доступ '{level.value}' к {scope.label}"
        )
        raise Forbidden(
            f"Роль {caller.role.value} не может изменять ротацию этой области (доступ: {level.value})",
            scope=scope
        )


def require_read(caller: Caller, scope: Scope) -> AccessLevel:
    """Проверка перед чтением статистики и назначений"""
    level = resolve_access(caller, scope)
    if level == AccessLevel.DENIED:
        logger.warning(
            f"Отказ в чтении: сотрудник {caller.person_id} ({caller.role.value}) не имеет доступа к {scope.label}"
        )
        raise Forbidden(
            f"Роль {caller.role.value} не имеет доступа к этой области",
            scope=scope
        )
    return level
