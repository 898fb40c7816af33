"""
Ошибки домена ротации дежурств.

Каждая ошибка несет стабильный код (`kind`), HTTP-статус, область ротации,
к которой относится запрос, и сообщение о нарушенном инварианте, чтобы
оператор мог исправить очередь или данные об отсутствиях без догадок.
"""
from typing import Any, Dict, Optional


class RotationError(Exception):
    """Базовая ошибка ротации"""
    kind = "RotationError"
    status_code = 400
    
    def __init__(self, message: str, scope: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.scope = scope
    
    def to_detail(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "scope": self.scope.as_dict() if self.scope is not None else None,
        }
    
    def __str__(self) -> str:
        if self.scope is not None:
            return f"{self.kind}: {self.message} [{self.scope.label}]"
        return f"{self.kind}: {self.message}"


class ScopeNotFound(RotationError):
    kind = "ScopeNotFound"
    status_code = 404


class InvalidScope(RotationError):
    kind = "InvalidScope"
    status_code = 400


class InvalidOrder(RotationError):
    kind = "InvalidOrder"
    status_code = 400


class InvalidPeriod(RotationError):
    kind = "InvalidPeriod"
    status_code = 400


class PersonNotInQueue(RotationError):
    kind = "PersonNotInQueue"
    status_code = 404


class PersonNotFound(RotationError):
    kind = "PersonNotFound"
    status_code = 404


class PersonNotEligible(RotationError):
    kind = "PersonNotEligible"
    status_code = 400


class PersonUnavailable(RotationError):
    kind = "PersonUnavailable"
    status_code = 409


class PersonNotAssigned(RotationError):
    kind = "PersonNotAssigned"
    status_code = 404


class DuplicateAssignment(RotationError):
    kind = "DuplicateAssignment"
    status_code = 409


class AssignmentConflict(RotationError):
    kind = "AssignmentConflict"
    status_code = 409


class StaffingLimitExceeded(RotationError):
    kind = "StaffingLimitExceeded"
    status_code = 409


class Forbidden(RotationError):
    kind = "Forbidden"
    status_code = 403


class Busy(RotationError):
    kind = "Busy"
    status_code = 409


class GenerationAborted(RotationError):
    kind = "GenerationAborted"
    status_code = 499


class UnavailabilityNotFound(RotationError):
    kind = "UnavailabilityNotFound"
    status_code = 404
