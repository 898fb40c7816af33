from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from duty_rotation.auth.security import verify_token
from duty_rotation.database import get_db
from duty_rotation.models import Person
from duty_rotation.services.authorization import Caller
from duty_rotation.services.rotation_service import RotationService

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Caller:
    """Dependency для проверки авторизации: вызывающий и его положение в оргструктуре"""
    token = credentials.credentials
    payload = verify_token(token)
    
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Неверный токен авторизации",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Неверный токен авторизации",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    person = db.query(Person).filter(Person.id == int(subject)).first()
    if person is None or not person.active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Сотрудник не найден или неактивен",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return Caller.from_person(person)


def get_rotation_service(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_user)
) -> RotationService:
    return RotationService(db, caller)
