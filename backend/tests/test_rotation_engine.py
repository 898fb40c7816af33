from datetime import date, timedelta
from statistics import pstdev

import pytest

from duty_rotation.errors import GenerationAborted, InvalidPeriod, InvalidScope
from duty_rotation.models import (
    DutyAssignment,
    DutyAssignmentPerson,
    Person,
    ShiftKind,
    Unavailability,
    UnavailabilityStatus,
)
from duty_rotation.services.availability import AvailabilityTracker
from duty_rotation.services.holiday_calendar import HolidayCalendar
from duty_rotation.services.rotation_engine import RotationEngine, duty_blocks, plan_rotation
from duty_rotation.services.rotation_queue import RotationQueueService

SAT1 = date(2025, 10, 4)
SUN1 = date(2025, 10, 5)
SAT2 = date(2025, 10, 11)
SUN2 = date(2025, 10, 12)

A, B, C, D = 1, 2, 3, 4


def _blocks(start, end, holidays=()):
    return duty_blocks(HolidayCalendar(holidays), start, end)


def test_duty_blocks_group_consecutive_days():
    blocks = _blocks(date(2025, 10, 1), SUN2)
    
    assert [b.dates for b in blocks] == [[SAT1, SUN1], [SAT2, SUN2]]
    assert all(b.shift_kind == ShiftKind.WEEKEND for b in blocks)


def test_holiday_next_to_weekend_extends_block():
    friday = date(2025, 10, 3)
    blocks = _blocks(date(2025, 10, 1), date(2025, 10, 7), holidays=[(friday, "Fête locale")])
    
    assert len(blocks) == 1
    assert blocks[0].dates == [friday, SAT1, SUN1]
    assert blocks[0].shift_kind == ShiftKind.HOLIDAY
    assert blocks[0].holiday_name == "Fête locale"


def test_weekday_holiday_is_its_own_block():
    blocks = _blocks(date(2025, 11, 3), date(2025, 11, 7), holidays=[(date(2025, 11, 6), "Marche Verte")])
    
    assert [b.dates for b in blocks] == [[date(2025, 11, 6)]]


def test_round_robin_example():
    # Sat1+Sun1 form one block, Sat2 is the next one
    blocks = _blocks(SAT1, SAT2)
    plan = plan_rotation([A, B, C, D], blocks, AvailabilityTracker({}), min_personnel=2)
    
    assert [p.person_ids for p in plan.assignments] == [[A, B], [C, D]]
    assert [(p.start_date, p.end_date) for p in plan.assignments] == [(SAT1, SUN1), (SAT2, SAT2)]
    assert plan.final_order == [A, B, C, D]
    assert plan.understaffed_dates == []


def test_queue_advances_after_first_block():
    plan = plan_rotation([A, B, C, D], _blocks(SAT1, SUN1), AvailabilityTracker({}), min_personnel=2)
    
    assert plan.final_order == [C, D, A, B]


def test_unavailable_person_keeps_priority():
    availability = AvailabilityTracker({A: {SAT1, SUN1}})
    plan = plan_rotation([A, B, C, D], _blocks(SAT1, SUN1), availability, min_personnel=2)
    
    assert plan.assignments[0].person_ids == [B, C]
    assert plan.final_order[0] == A
    
    plan = plan_rotation([A, B, C, D], _blocks(SAT1, SAT2), availability, min_personnel=2)
    assert plan.assignments[1].person_ids[0] == A


def test_partial_availability_splits_block_and_flags_understaffed():
    availability = AvailabilityTracker({A: {SAT1}})
    plan = plan_rotation([A, B], _blocks(SAT1, SUN1), availability, min_personnel=2)
    
    assert [(p.start_date, p.end_date) for p in plan.assignments] == [(SAT1, SAT1), (SUN1, SUN1)]
    assert plan.assignments[0].person_ids == [B]
    assert plan.assignments[0].understaffed
    assert plan.assignments[1].person_ids == [A, B]
    assert plan.understaffed_dates == [SAT1]


def test_nobody_available_yields_empty_understaffed_assignment():
    availability = AvailabilityTracker({A: {SAT1}})
    plan = plan_rotation([A], _blocks(SAT1, SAT1), availability, min_personnel=1)
    
    assert plan.assignments[0].person_ids == []
    assert plan.understaffed_dates == [SAT1]


def test_assignment_never_exceeds_min_personnel_or_repeats_person():
    order = list(range(1, 8))
    plan = plan_rotation(order, _blocks(date(2025, 1, 1), date(2025, 6, 30)), AvailabilityTracker({}), 3)
    
    for planned in plan.assignments:
        assert len(planned.person_ids) <= 3
        assert len(set(planned.person_ids)) == len(planned.person_ids)


def test_plan_is_deterministic():
    availability = AvailabilityTracker({2: {SAT2}, 5: {SUN1}})
    blocks = _blocks(date(2025, 9, 1), date(2025, 12, 31))
    
    first = plan_rotation([1, 2, 3, 4, 5], blocks, availability, 2)
    second = plan_rotation([1, 2, 3, 4, 5], blocks, availability, 2)
    
    assert [p.person_ids for p in first.assignments] == [p.person_ids for p in second.assignments]
    assert first.final_order == second.final_order


def test_full_availability_over_a_year_is_fair():
    order = list(range(1, 9))
    plan = plan_rotation(order, _blocks(date(2025, 1, 1), date(2025, 12, 31)), AvailabilityTracker({}), 2)
    
    counts = {pid: 0 for pid in order}
    for planned in plan.assignments:
        for pid in planned.person_ids:
            counts[pid] += 1
    
    assert max(counts.values()) - min(counts.values()) <= 1
    assert pstdev(list(counts.values())) <= 1


def test_plan_checks_abort_before_each_block():
    with pytest.raises(GenerationAborted):
        plan_rotation([A, B], _blocks(SAT1, SUN2), AvailabilityTracker({}), 2, should_abort=lambda: True)


# Persistence


def test_generate_persists_assignments_and_queue(db, org):
    result = RotationEngine(db).generate(org.sector_scope, SAT1, SAT2, min_personnel=2)
    
    assert [a.person_ids for a in result.assignments] == [[3, 4], [5, 6]]
    assert result.understaffed_dates == []
    assert result.queue_order == [3, 4, 5, 6]
    
    stored = db.query(DutyAssignment).order_by(DutyAssignment.start_date).all()
    assert [(a.start_date, a.end_date) for a in stored] == [(SAT1, SUN1), (SAT2, SAT2)]
    assert all(a.sector_id == 1 and a.service_id is None for a in stored)


def test_regenerate_replaces_previous_assignments(db, org):
    engine = RotationEngine(db)
    engine.generate(org.sector_scope, SAT1, SUN2, min_personnel=2)
    engine.generate(org.sector_scope, SAT1, SUN2, min_personnel=1)
    
    stored = db.query(DutyAssignment).all()
    assert len(stored) == 2
    assert all(len(a.person_ids) == 1 for a in stored)


def test_regenerate_from_inside_a_block_keeps_whole_block_covered(db, org):
    engine = RotationEngine(db)
    engine.generate(org.sector_scope, SAT1, SUN2, min_personnel=2)

    result = engine.generate(org.sector_scope, SUN1, SUN2, min_personnel=2)

    assert result.start_date == SAT1
    assert result.end_date == SUN2
    covering = [a for a in db.query(DutyAssignment).all() if a.start_date <= SAT1 <= a.end_date]
    assert len(covering) == 1
    assert len(covering[0].person_ids) == 2
    assert db.query(DutyAssignment).count() == 2


def test_regenerate_unrelated_range_leaves_existing_blocks(db, org):
    engine = RotationEngine(db)
    engine.generate(org.sector_scope, SAT1, SUN1, min_personnel=2)

    result = engine.generate(org.sector_scope, SAT2, SUN2, min_personnel=2)

    assert result.start_date == SAT2
    assert db.query(DutyAssignment).count() == 2


def test_engine_keeps_an_explicit_empty_calendar(db, org):
    green_march = date(2025, 11, 6)
    engine = RotationEngine(db, calendar=HolidayCalendar(()))

    assert len(engine.calendar) == 0
    assert engine.generate(org.sector_scope, green_march, green_march).assignments == []


def test_generate_skips_unavailable_and_continues_queue(db, org):
    db.add(Unavailability(person_id=3, start_date=SAT1, end_date=SUN1,
                          reason="annual_leave", status=UnavailabilityStatus.APPROVED))
    db.commit()
    
    result = RotationEngine(db).generate(org.sector_scope, SAT1, SUN1, min_personnel=2)
    
    assert result.assignments[0].person_ids == [4, 5]
    assert result.queue_order[0] == 3
    assert RotationQueueService(db).get(org.sector_scope)[0] == 3


def test_generate_flags_understaffed_days(db, org):
    result = RotationEngine(db).generate(org.sector_scope, SAT1, SUN1, min_personnel=5)
    
    assert result.understaffed_dates == [SAT1, SUN1]
    assert len(result.assignments) == 2
    assert all(a.understaffed for a in result.assignments)


def test_generate_avoids_duty_in_other_scope(db, org):
    other = DutyAssignment(
        site_id=1, sector_id=2, service_id=None,
        start_date=SAT1, end_date=SUN1,
        shift_kind=ShiftKind.WEEKEND, required_personnel=1,
        duty_people=[DutyAssignmentPerson(person_id=3)],
    )
    db.add(other)
    db.commit()
    
    result = RotationEngine(db).generate(org.sector_scope, SAT1, SUN1, min_personnel=2)
    
    assert 3 not in result.assignments[0].person_ids


def test_aborted_generation_persists_nothing(db, org):
    engine = RotationEngine(db)
    engine.generate(org.sector_scope, SAT1, SUN1, min_personnel=2)
    before_queue = RotationQueueService(db).get(org.sector_scope)
    before = [(a.start_date, a.person_ids) for a in db.query(DutyAssignment).all()]
    
    calls = []
    
    def abort_at_commit():
        # two blocks are checked during planning, the third call precedes commit
        calls.append(1)
        return len(calls) >= 3
    
    with pytest.raises(GenerationAborted) as exc_info:
        engine.generate(org.sector_scope, SAT1, SUN2, min_personnel=2, should_abort=abort_at_commit)
    
    assert exc_info.value.scope == org.sector_scope
    assert [(a.start_date, a.person_ids) for a in db.query(DutyAssignment).all()] == before
    assert RotationQueueService(db).get(org.sector_scope) == before_queue


@pytest.mark.parametrize("start, end, min_personnel", [
    (SUN2, SAT1, 2),
    (date(2025, 1, 1), date(2026, 6, 1), 2),
])
def test_generate_rejects_invalid_period(db, org, start, end, min_personnel):
    with pytest.raises(InvalidPeriod):
        RotationEngine(db).generate(org.sector_scope, start, end, min_personnel=min_personnel)


def test_generate_without_eligible_people(db, org):
    for pid in org.engineers:
        db.get(Person, pid).active = False
    db.commit()
    
    with pytest.raises(InvalidScope):
        RotationEngine(db).generate(org.sector_scope, SAT1, SUN1)


def test_generate_produces_holiday_assignment(db, org):
    green_march = date(2025, 11, 6)
    result = RotationEngine(db).generate(org.sector_scope, green_march, green_march + timedelta(days=1))
    
    assert len(result.assignments) == 1
    assert result.assignments[0].shift_kind == ShiftKind.HOLIDAY
    assert result.assignments[0].holiday_name == "Marche Verte"
