from fastapi import APIRouter
from duty_rotation.api import rotation, assignments, statistics, holidays, utils

api_router = APIRouter()

# Проверка состояния (без защиты)
api_router.include_router(utils.router)

# Защищенные роутеры
api_router.include_router(rotation.router)
api_router.include_router(assignments.router)
api_router.include_router(statistics.router)
api_router.include_router(holidays.router)
