from datetime import date

import pytest

from duty_rotation.services.rotation_engine import RotationEngine
from duty_rotation.services.rotation_queue import RotationQueueService
from duty_rotation.services.rotation_service import RotationService
from duty_rotation.services.statistics import StatisticsService, analyze_load, apply_recommendations

SAT1 = date(2025, 10, 4)
SAT2 = date(2025, 10, 11)


def test_even_load_is_balanced_without_recommendations():
    analysis = analyze_load([[1, 2], [3, 4]], [1, 2, 3, 4])
    
    assert analysis.total_assignments == 2
    assert analysis.per_person_load == {1: 1, 2: 1, 3: 1, 4: 1}
    assert analysis.average == 1
    assert analysis.balanced
    assert analysis.recommendations == []
    assert analysis.equity_score == 100.0
    assert analysis.load_share == {1: 25.0, 2: 25.0, 3: 25.0, 4: 25.0}


def test_tolerance_boundary_counts_as_balanced():
    # average 4, band [3, 5] with tolerance 0.25
    boundary = analyze_load([[1]] * 3 + [[2]] * 5, [1, 2], tolerance=0.25)
    assert boundary.average == 4
    assert boundary.balanced
    
    outside = analyze_load([[1]] * 2 + [[2]] * 6, [1, 2], tolerance=0.25)
    assert outside.underloaded == {1}
    assert outside.overloaded == {2}


def test_underloaded_and_overloaded_are_paired():
    analysis = analyze_load([[1, 2], [1, 2], [1, 3]], [1, 2, 3, 4], names={1: "Amine", 4: "Driss"})
    
    assert analysis.average == 1.5
    assert analysis.overloaded == {1, 2}
    assert analysis.underloaded == {3, 4}
    assert [(s.underloaded_id, s.overloaded_id) for s in analysis.swaps] == [(4, 1), (3, 2)]
    assert len(analysis.recommendations) == 2
    assert "Amine (#1)" in analysis.recommendations[0]
    assert "Driss (#4)" in analysis.recommendations[0]
    assert not analysis.balanced
    assert analysis.equity_score < 100


def test_people_without_duty_count_as_zero():
    analysis = analyze_load([[1, 2]], [1, 2, 3])
    
    assert analysis.per_person_load[3] == 0
    assert 3 in analysis.underloaded


def test_empty_period():
    analysis = analyze_load([], [1, 2])
    
    assert analysis.total_assignments == 0
    assert analysis.average == 0
    assert analysis.balanced


def test_apply_recommendations_swaps_pairs():
    analysis = analyze_load([[1, 2], [1, 2], [1, 3]], [1, 2, 3, 4])
    new_order, changes = apply_recommendations([1, 2, 3, 4], analysis)
    
    assert new_order == [4, 3, 2, 1]
    assert [c.action for c in changes] == ["swap", "swap"]


def test_apply_recommendations_moves_unpaired():
    analysis = analyze_load([[1], [2], [3]], [1, 2, 3, 4])
    new_order, changes = apply_recommendations([1, 2, 3, 4], analysis)
    
    assert new_order[0] == 4
    assert set(new_order[-2:]) == {2, 3}
    assert sorted(new_order) == [1, 2, 3, 4]
    assert "move_to_end" in [c.action for c in changes]


def test_apply_recommendations_keeps_balanced_order():
    analysis = analyze_load([[1, 2], [3, 4]], [1, 2, 3, 4])
    
    assert apply_recommendations([3, 1, 4, 2], analysis) == ([3, 1, 4, 2], [])


def test_statistics_after_round_robin_example(db, org):
    RotationEngine(db).generate(org.sector_scope, SAT1, SAT2, min_personnel=2)
    queue_before = RotationQueueService(db).get(org.sector_scope)
    
    stats = StatisticsService(db).analyze(org.sector_scope, SAT1, SAT2)
    
    assert stats.analysis.total_assignments == 2
    assert stats.analysis.per_person_load == {3: 1, 4: 1, 5: 1, 6: 1}
    assert stats.analysis.average == 1
    assert stats.analysis.balanced
    assert stats.analysis.recommendations == []
    assert stats.generated_at is not None
    assert RotationQueueService(db).get(org.sector_scope) == queue_before


def test_optimize_applies_recommendations_through_reorder(db, org, caller_for):
    service = RotationService(db, caller_for(org.admin_id))
    # 3 and 4 take every duty, 5 and 6 none
    service.add_person_to_date(org.sector_scope, SAT1, 3)
    service.add_person_to_date(org.sector_scope, SAT1, 4)
    service.add_person_to_date(org.sector_scope, SAT2, 3)
    service.add_person_to_date(org.sector_scope, SAT2, 4)
    service.reorder_rotation(org.sector_scope, [3, 4, 5, 6])
    
    stats = service.get_statistics(org.sector_scope)
    assert stats.analysis.overloaded == {3, 4}
    assert stats.analysis.underloaded == {5, 6}
    assert service.get_queue(org.sector_scope) == [3, 4, 5, 6]
    
    changes = service.optimize_rotation(org.sector_scope)
    
    assert changes
    queue = service.get_queue(org.sector_scope)
    assert queue.index(5) < queue.index(3)
    assert queue.index(6) < queue.index(4)
    
    # A second run finds nothing more to move
    assert service.optimize_rotation(org.sector_scope) == []


def test_statistics_read_access_for_sibling_service_chief(db, org, caller_for):
    sibling_chief = RotationService(db, caller_for(org.sibling_service_chief_id))
    
    stats = sibling_chief.get_statistics(org.service_scope)
    
    assert stats.analysis.per_person_load == {8: 0, 9: 0, 10: 0}


@pytest.mark.parametrize("person_attr", ["sibling_collaborator_id", "sibling_sector_engineer_id"])
def test_statistics_denied_outside_unit(db, org, caller_for, person_attr):
    from duty_rotation.errors import Forbidden
    service = RotationService(db, caller_for(getattr(org, person_attr)))
    
    with pytest.raises(Forbidden):
        service.get_statistics(org.service_scope)
