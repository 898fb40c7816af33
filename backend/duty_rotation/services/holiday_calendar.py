from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session
from duty_rotation.config import settings
from duty_rotation.models import Holiday
import logging

logger = logging.getLogger(__name__)

BUILTIN_TABLE_VERSION = "2026.1"

# Фиксированные национальные праздники (григорианский календарь)
_FIXED_HOLIDAYS: Tuple[Tuple[int, int, str], ...] = (
    (1, 1, "Nouvel An"),
    (1, 11, "Manifeste de l'Indépendance"),
    (1, 14, "Nouvel An Amazigh"),
    (5, 1, "Fête du Travail"),
    (7, 30, "Fête du Trône"),
    (8, 14, "Fête Oued Ed-Dahab"),
    (8, 20, "Révolution du Roi et du Peuple"),
    (8, 21, "Fête de la Jeunesse"),
    (11, 6, "Marche Verte"),
    (11, 18, "Fête de l'Indépendance"),
)

# Религиозные праздники по лунному календарю: даты объявляются ежегодно
_LUNAR_HOLIDAYS: Tuple[Tuple[date, str], ...] = (
    (date(2024, 4, 10), "Aïd Al-Fitr"),
    (date(2024, 6, 17), "Aïd Al-Adha"),
    (date(2024, 7, 8), "Nouvel An de l'Hégire"),
    (date(2024, 9, 16), "Mawlid Ennabawi"),
    (date(2025, 3, 31), "Aïd Al-Fitr"),
    (date(2025, 6, 7), "Aïd Al-Adha"),
    (date(2025, 6, 27), "Nouvel An de l'Hégire"),
    (date(2025, 9, 5), "Mawlid Ennabawi"),
    (date(2026, 3, 20), "Aïd Al-Fitr"),
    (date(2026, 5, 27), "Aïd Al-Adha"),
    (date(2026, 6, 16), "Nouvel An de l'Hégire"),
    (date(2026, 8, 25), "Mawlid Ennabawi"),
)

MOROCCO_HOLIDAYS: Tuple[Tuple[date, str], ...] = tuple(sorted(
    [
        (date(year, month, day), name)
        for year in range(2024, 2028)
        for month, day, name in _FIXED_HOLIDAYS
    ]
    + list(_LUNAR_HOLIDAYS)
))


@dataclass(frozen=True)
class DayClassification:
    """Результат классификации календарного дня"""
    date: date
    is_weekend: bool
    is_holiday: bool
    holiday_name: Optional[str] = None
    
    @property
    def is_duty_day(self) -> bool:
        """День требует покрытия дежурством"""
        return self.is_weekend or self.is_holiday


class HolidayCalendar:
    """
    Календарь выходных и праздничных дней.
    
    Выходной - суббота или воскресенье. Праздник определяется точным
    совпадением даты с таблицей (дата, название); правил повторения нет,
    новый год требует обновления таблицы.
    """
    
    def __init__(self, entries: Iterable[Tuple[date, str]], version: str = BUILTIN_TABLE_VERSION):
        self.version = version
        self._holidays: Dict[date, str] = {}
        for holiday_date, name in entries:
            existing = self._holidays.get(holiday_date)
            if existing:
                if name in existing:
                    continue
                # Лунный праздник может совпасть с фиксированным
                name = f"{existing} / {name}"
            self._holidays[holiday_date] = name
    
    def classify(self, day: date) -> DayClassification:
        holiday_name = self._holidays.get(day)
        return DayClassification(
            date=day,
            is_weekend=day.weekday() >= 5,
            is_holiday=holiday_name is not None,
            holiday_name=holiday_name,
        )
    
    def is_duty_day(self, day: date) -> bool:
        return self.classify(day).is_duty_day
    
    def holidays_in_range(self, start_date: date, end_date: date) -> List[Tuple[date, str]]:
        """Праздники в периоде (включительно), по возрастанию даты"""
        return sorted(
            (holiday_date, name)
            for holiday_date, name in self._holidays.items()
            if start_date <= holiday_date <= end_date
        )
    
    def __len__(self) -> int:
        return len(self._holidays)


def default_calendar() -> HolidayCalendar:
    """Встроенная таблица праздников Марокко"""
    return HolidayCalendar(MOROCCO_HOLIDAYS, version=BUILTIN_TABLE_VERSION)


def load_calendar(db: Session) -> HolidayCalendar:
    """
    Загрузить календарь для текущей юрисдикции и версии таблицы
    
    Если в БД есть строки для настроенной версии, они полностью заменяют
    встроенную таблицу.
    """
    rows = db.query(Holiday).filter(
        Holiday.country == settings.holiday_country,
        Holiday.version == settings.holiday_table_version
    ).all()
    
    if rows:
        logger.debug(
            f"Праздничный календарь {settings.holiday_country} версии "
            f"{settings.holiday_table_version}: {len(rows)} записей из БД"
        )
        return HolidayCalendar(((row.date, row.name) for row in rows), version=settings.holiday_table_version)
    
    if settings.holiday_country != "MA":
        logger.warning(f"Нет таблицы праздников для страны {settings.holiday_country}, учитываются только выходные")
        return HolidayCalendar((), version=settings.holiday_table_version)
    
    return default_calendar()
