from pydantic import BaseModel
from datetime import date
from typing import Optional


class DayClassificationOut(BaseModel):
    date: date
    is_weekend: bool
    is_holiday: bool
    holiday_name: Optional[str] = None
    is_duty_day: bool


class HolidayOut(BaseModel):
    date: date
    name: str
