from .organization import Site, Sector, Service
from .person import Person, PersonRole
from .unavailability import Unavailability, UnavailabilityStatus
from .holiday import Holiday
from .rotation_queue import RotationQueue, RotationQueueEntry
from .duty_assignment import DutyAssignment, DutyAssignmentPerson, ShiftKind

__all__ = [
    "Site",
    "Sector",
    "Service",
    "Person",
    "PersonRole",
    "Unavailability",
    "UnavailabilityStatus",
    "Holiday",
    "RotationQueue",
    "RotationQueueEntry",
    "DutyAssignment",
    "DutyAssignmentPerson",
    "ShiftKind",
]
