import pytest

from duty_rotation.errors import Forbidden
from duty_rotation.models import PersonRole
from duty_rotation.services.authorization import (
    AccessLevel,
    Caller,
    require_manage,
    require_read,
    resolve_access,
)
from duty_rotation.services.scope import Scope

SECTOR = Scope(site_id=1, sector_id=1)
SERVICE = Scope(site_id=1, sector_id=1, service_id=1)
SIBLING_SERVICE = Scope(site_id=1, sector_id=1, service_id=2)
SIBLING_SECTOR = Scope(site_id=1, sector_id=2)
REMOTE_SECTOR = Scope(site_id=2, sector_id=3)

ADMIN = Caller(person_id=1, role=PersonRole.ADMIN, site_id=1)
SECTOR_CHIEF = Caller(person_id=2, role=PersonRole.SECTOR_CHIEF, site_id=1, sector_id=1)
ENGINEER = Caller(person_id=3, role=PersonRole.SECTOR_ENGINEER, site_id=1, sector_id=1)
SERVICE_CHIEF = Caller(person_id=7, role=PersonRole.SERVICE_CHIEF, site_id=1, sector_id=1, service_id=1)
COLLABORATOR = Caller(person_id=8, role=PersonRole.SERVICE_COLLABORATOR, site_id=1, sector_id=1, service_id=1)


@pytest.mark.parametrize("caller, scope, expected", [
    (ADMIN, SECTOR, AccessLevel.MANAGE),
    (ADMIN, REMOTE_SECTOR, AccessLevel.MANAGE),
    (SECTOR_CHIEF, SECTOR, AccessLevel.MANAGE),
    (SECTOR_CHIEF, SERVICE, AccessLevel.READ),
    (SECTOR_CHIEF, SIBLING_SECTOR, AccessLevel.READ),
    (SECTOR_CHIEF, REMOTE_SECTOR, AccessLevel.DENIED),
    (ENGINEER, SECTOR, AccessLevel.READ),
    (ENGINEER, SERVICE, AccessLevel.READ),
    (ENGINEER, SIBLING_SECTOR, AccessLevel.DENIED),
    (SERVICE_CHIEF, SERVICE, AccessLevel.MANAGE),
    (SERVICE_CHIEF, SIBLING_SERVICE, AccessLevel.READ),
    (SERVICE_CHIEF, SECTOR, AccessLevel.DENIED),
    (SERVICE_CHIEF, SIBLING_SECTOR, AccessLevel.DENIED),
    (COLLABORATOR, SERVICE, AccessLevel.READ),
    (COLLABORATOR, SIBLING_SERVICE, AccessLevel.DENIED),
    (COLLABORATOR, SECTOR, AccessLevel.DENIED),
])
def test_resolve_access(caller, scope, expected):
    assert resolve_access(caller, scope) == expected


def test_service_chief_cannot_manage_sibling_service():
    with pytest.raises(Forbidden) as exc_info:
        require_manage(SERVICE_CHIEF, SIBLING_SERVICE)
    
    assert exc_info.value.scope == SIBLING_SERVICE
    assert exc_info.value.status_code == 403
    # Read access to the sibling is still granted
    assert require_read(SERVICE_CHIEF, SIBLING_SERVICE) == AccessLevel.READ


def test_only_admin_manages_outside_own_unit():
    for caller in (SECTOR_CHIEF, ENGINEER, SERVICE_CHIEF, COLLABORATOR):
        for scope in (SIBLING_SECTOR, REMOTE_SECTOR):
            assert resolve_access(caller, scope) != AccessLevel.MANAGE
    assert resolve_access(ADMIN, SIBLING_SECTOR) == AccessLevel.MANAGE


def test_require_read_rejects_denied_scope():
    with pytest.raises(Forbidden):
        require_read(COLLABORATOR, SIBLING_SERVICE)


def test_caller_from_person(db, org, caller_for):
    caller = caller_for(org.service_chief_id)
    
    assert caller == SERVICE_CHIEF
