import pytest

from duty_rotation.errors import InvalidOrder, PersonNotInQueue
from duty_rotation.models import Person, PersonRole
from duty_rotation.services.rotation_queue import (
    RotationQueueService,
    advance,
    move_to_end,
    reconcile,
)


def test_advance_rotates_head_to_tail():
    assert advance([1, 2, 3, 4], 2) == [3, 4, 1, 2]
    assert advance([1, 2, 3, 4], 0) == [1, 2, 3, 4]
    assert advance([1, 2, 3], 4) == [2, 3, 1]
    assert advance([], 3) == []


def test_move_to_end_keeps_relative_order():
    assert move_to_end([1, 2, 3, 4], 2) == [1, 3, 4, 2]
    assert move_to_end([1, 2, 3, 4], 4) == [1, 2, 3, 4]


def test_reconcile_prunes_and_appends():
    assert reconcile([4, 2, 9, 1], [1, 2, 3, 4]) == [4, 2, 1, 3]


def test_queue_is_initialized_from_eligible_people(db, org):
    service = RotationQueueService(db)
    
    assert service.get(org.sector_scope) == org.engineers
    assert service.get(org.service_scope) == org.collaborators


def test_service_chief_joins_rotation_when_enabled(db, org, monkeypatch):
    from duty_rotation.config import settings
    monkeypatch.setattr(settings, "include_service_chief_in_rotation", True)
    
    assert RotationQueueService(db).get(org.service_scope) == [org.service_chief_id] + org.collaborators


def test_reorder_round_trip(db, org):
    service = RotationQueueService(db)
    
    assert service.reorder(org.sector_scope, [6, 4, 5, 3]) == [6, 4, 5, 3]
    assert RotationQueueService(db).get(org.sector_scope) == [6, 4, 5, 3]


@pytest.mark.parametrize("new_order", [
    [3, 4, 5, 5],
    [3, 4, 5],
    [3, 4, 5, 6, 8],
    [],
])
def test_invalid_reorder_leaves_queue_unchanged(db, org, new_order):
    service = RotationQueueService(db)
    service.reorder(org.sector_scope, [5, 6, 3, 4])
    
    with pytest.raises(InvalidOrder) as exc_info:
        service.reorder(org.sector_scope, new_order)
    
    assert exc_info.value.scope == org.sector_scope
    assert service.get(org.sector_scope) == [5, 6, 3, 4]


def test_move_to_end_is_idempotent(db, org):
    service = RotationQueueService(db)
    
    assert service.move_to_end(org.sector_scope, 4) == [3, 5, 6, 4]
    assert service.move_to_end(org.sector_scope, 4) == [3, 5, 6, 4]
    assert service.get(org.sector_scope) == [3, 5, 6, 4]


def test_move_to_end_unknown_person(db, org):
    service = RotationQueueService(db)
    
    with pytest.raises(PersonNotInQueue):
        service.move_to_end(org.sector_scope, org.collaborators[0])


def test_advance_persists(db, org):
    service = RotationQueueService(db)
    
    assert service.advance(org.sector_scope, 2) == [5, 6, 3, 4]
    assert service.get(org.sector_scope) == [5, 6, 3, 4]


def test_queue_follows_directory_changes(db, org):
    service = RotationQueueService(db)
    service.reorder(org.sector_scope, [6, 5, 4, 3])
    
    db.get(Person, 5).active = False
    db.add(Person(id=20, first_name="Samir", role=PersonRole.SECTOR_ENGINEER, site_id=1, sector_id=1, active=True))
    db.commit()
    
    assert service.get(org.sector_scope) == [6, 4, 3, 20]
    assert service.sync(org.sector_scope) == [6, 4, 3, 20]
    db.commit()
    assert service.get(org.sector_scope) == [6, 4, 3, 20]


def test_queues_are_independent_per_scope(db, org):
    service = RotationQueueService(db)
    service.reorder(org.service_scope, [10, 9, 8])
    
    assert service.get(org.sector_scope) == org.engineers
    assert service.get(org.sibling_service_scope) == [org.sibling_collaborator_id]
