from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List
from duty_rotation.database import get_db
from duty_rotation.schemas.holiday import DayClassificationOut, HolidayOut
from duty_rotation.services.authorization import Caller
from duty_rotation.services.holiday_calendar import load_calendar
from duty_rotation.auth.dependencies import get_current_user

router = APIRouter(prefix="/api/holidays", tags=["holidays"])


@router.get("/classify", response_model=DayClassificationOut)
def classify_day(
    day: date = Query(..., description="Дата для классификации"),
    db: Session = Depends(get_db),
    current_user: Caller = Depends(get_current_user)
):
    """Определить, является ли день выходным или праздником"""
    result = load_calendar(db).classify(day)
    return DayClassificationOut(
        date=result.date,
        is_weekend=result.is_weekend,
        is_holiday=result.is_holiday,
        holiday_name=result.holiday_name,
        is_duty_day=result.is_duty_day
    )


@router.get("", response_model=List[HolidayOut])
def list_holidays(
    start_date: date = Query(..., description="Начальная дата"),
    end_date: date = Query(..., description="Конечная дата"),
    db: Session = Depends(get_db),
    current_user: Caller = Depends(get_current_user)
):
    """Праздники в периоде"""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date должна быть не раньше start_date")
    
    calendar = load_calendar(db)
    return [
        HolidayOut(date=holiday_date, name=name)
        for holiday_date, name in calendar.holidays_in_range(start_date, end_date)
    ]
