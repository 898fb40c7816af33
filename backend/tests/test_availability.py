from datetime import date

from duty_rotation.models import Unavailability, UnavailabilityStatus
from duty_rotation.services.availability import AvailabilityTracker


def test_person_without_records_is_available():
    tracker = AvailabilityTracker({})
    
    assert tracker.is_available(1, date(2025, 10, 4))
    assert tracker.unavailable_dates(1) == frozenset()


def test_is_available_for_requires_every_day():
    tracker = AvailabilityTracker({1: {date(2025, 10, 5)}})
    
    assert tracker.is_available(1, date(2025, 10, 4))
    assert not tracker.is_available_for(1, [date(2025, 10, 4), date(2025, 10, 5)])
    assert tracker.available_subset([1, 2], date(2025, 10, 5)) == {2}


def test_with_blocked_returns_merged_copy():
    tracker = AvailabilityTracker({1: {date(2025, 10, 4)}})
    merged = tracker.with_blocked({1: {date(2025, 10, 5)}, 2: {date(2025, 10, 4)}})
    
    assert merged.unavailable_dates(1) == {date(2025, 10, 4), date(2025, 10, 5)}
    assert not merged.is_available(2, date(2025, 10, 4))
    # the original tracker is unchanged
    assert tracker.is_available(1, date(2025, 10, 5))
    assert tracker.is_available(2, date(2025, 10, 4))


def test_from_db_uses_blocking_statuses_and_clips_to_window(db, org):
    db.add_all([
        Unavailability(person_id=3, start_date=date(2025, 9, 28), end_date=date(2025, 10, 4),
                       reason="annual_leave", status=UnavailabilityStatus.APPROVED),
        Unavailability(person_id=4, start_date=date(2025, 10, 5), end_date=date(2025, 10, 5),
                       reason="sick_leave", status=UnavailabilityStatus.PENDING),
        Unavailability(person_id=5, start_date=date(2025, 10, 4), end_date=date(2025, 10, 5),
                       reason="annual_leave", status=UnavailabilityStatus.REJECTED),
        Unavailability(person_id=6, start_date=date(2025, 10, 4), end_date=date(2025, 10, 5),
                       reason="annual_leave", status=UnavailabilityStatus.CANCELLED),
    ])
    db.commit()
    
    tracker = AvailabilityTracker.from_db(db, [3, 4, 5, 6], date(2025, 10, 3), date(2025, 10, 12))
    
    assert tracker.unavailable_dates(3) == {date(2025, 10, 3), date(2025, 10, 4)}
    assert tracker.unavailable_dates(4) == {date(2025, 10, 5)}
    assert tracker.is_available_for(5, [date(2025, 10, 4), date(2025, 10, 5)])
    assert tracker.is_available_for(6, [date(2025, 10, 4), date(2025, 10, 5)])
