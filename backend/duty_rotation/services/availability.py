from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional, Set
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.models import Unavailability, UnavailabilityStatus
import logging

logger = logging.getLogger(__name__)


class AvailabilityTracker:
    """Даты, в которые сотрудника нельзя назначать на дежурство (только чтение)"""
    
    def __init__(self, unavailable_dates: Optional[Dict[int, Set[date]]] = None):
        self._unavailable: Dict[int, FrozenSet[date]] = {
            person_id: frozenset(dates)
            for person_id, dates in (unavailable_dates or {}).items()
        }
    
    def is_available(self, person_id: int, day: date) -> bool:
        return day not in self._unavailable.get(person_id, frozenset())
    
    def is_available_for(self, person_id: int, days: Iterable[date]) -> bool:
        """Доступен во все указанные дни"""
        blocked = self._unavailable.get(person_id, frozenset())
        return not any(day in blocked for day in days)
    
    def available_subset(self, person_ids: Iterable[int], day: date) -> Set[int]:
        return {person_id for person_id in person_ids if self.is_available(person_id, day)}
    
    def unavailable_dates(self, person_id: int) -> FrozenSet[date]:
        return self._unavailable.get(person_id, frozenset())
    
    def with_blocked(self, extra: Dict[int, Set[date]]) -> "AvailabilityTracker":
        """Новый трекер с дополнительно заблокированными датами (например, дежурства в других областях)"""
        merged: Dict[int, Set[date]] = {pid: set(dates) for pid, dates in self._unavailable.items()}
        for person_id, dates in extra.items():
            merged.setdefault(person_id, set()).update(dates)
        return AvailabilityTracker(merged)
    
    @classmethod
    def from_db(
        cls,
        db: Session,
        person_ids: List[int],
        start_date: date,
        end_date: date
    ) -> "AvailabilityTracker":
        """
        Собрать трекер по заявкам на отсутствие из БД
        
        Args:
            db: Сессия БД
            person_ids: Сотрудники области ротации
            start_date: Начало окна (включительно)
            end_date: Конец окна (включительно)
            
        Returns:
            Трекер с датами отсутствия, обрезанными по окну
        """
        if not person_ids:
            return cls({})
        
        statuses = [UnavailabilityStatus(s) for s in settings.blocking_unavailability_statuses]
        periods = db.query(Unavailability).filter(
            Unavailability.person_id.in_(person_ids),
            Unavailability.status.in_(statuses),
            Unavailability.start_date <= end_date,
            Unavailability.end_date >= start_date
        ).all()
        
        unavailable: Dict[int, Set[date]] = {}
        for period in periods:
            day = max(period.start_date, start_date)
            last_day = min(period.end_date, end_date)
            dates = unavailable.setdefault(period.person_id, set())
            while day <= last_day:
                dates.add(day)
                day += timedelta(days=1)
        
        logger.debug(f"Загружено {len(periods)} периодов отсутствия для {len(person_ids)} сотрудников")
        return cls(unavailable)
