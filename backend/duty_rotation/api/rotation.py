from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional
from duty_rotation.database import get_db
from duty_rotation.errors import RotationError
from duty_rotation.schemas.rotation import (
    GenerateRotationRequest,
    GenerateRotationResponse,
    MoveToEndRequest,
    OptimizeRotationRequest,
    OptimizeRotationResponse,
    QueueChangeOut,
    QueueOut,
    ReorderRotationRequest,
)
from duty_rotation.services.rotation_service import RotationService
from duty_rotation.auth.dependencies import get_rotation_service
from duty_rotation.api.common import assignments_to_schema, http_error, scope_info
import asyncio
import threading
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rotation", tags=["rotation"])

DISCONNECT_POLL_SECONDS = 0.5


def _generate_response(
    db: Session,
    service: RotationService,
    data: GenerateRotationRequest,
    should_abort
) -> GenerateRotationResponse:
    """Генерация и сборка ответа; обращается к БД и выполняется в пуле потоков"""
    scope = service.resolve_scope(data.sector_id, data.service_id)
    result = service.generate_rotation(
        scope,
        data.start_date,
        data.end_date,
        data.min_personnel,
        should_abort
    )
    return GenerateRotationResponse(
        scope=scope_info(result.scope),
        start_date=result.start_date,
        end_date=result.end_date,
        assignments=assignments_to_schema(db, result.assignments),
        understaffed_dates=result.understaffed_dates,
        queue=result.queue_order,
        generated_at=result.generated_at
    )


@router.post("/generate", response_model=GenerateRotationResponse)
async def generate_rotation(
    data: GenerateRotationRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """
    Сгенерировать ротацию на период
    
    Прежние назначения области в периоде заменяются. Если клиент
    закрывает соединение, генерация прерывается и ничего не сохраняется.
    """
    aborted = threading.Event()
    
    async def watch_disconnect():
        while not aborted.is_set():
            if await request.is_disconnected():
                logger.warning("Клиент отключился, генерация будет прервана")
                aborted.set()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)
    
    watcher = asyncio.create_task(watch_disconnect())
    try:
        return await run_in_threadpool(_generate_response, db, service, data, aborted.is_set)
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        await run_in_threadpool(db.rollback)
        logger.error(f"Ошибка при генерации ротации: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка генерации ротации: {str(e)}")
    finally:
        watcher.cancel()


@router.get("/queue", response_model=QueueOut)
def get_queue(
    sector_id: int = Query(..., description="ID сектора"),
    service_id: Optional[int] = Query(None, description="ID службы (для ротации службы)"),
    service: RotationService = Depends(get_rotation_service)
):
    """Получить текущий порядок очереди ротации"""
    try:
        scope = service.resolve_scope(sector_id, service_id)
        return QueueOut(scope=scope_info(scope), person_ids=service.get_queue(scope))
    except RotationError as e:
        raise http_error(e)


@router.put("/queue/reorder", response_model=QueueOut)
def reorder_rotation(
    data: ReorderRotationRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Изменить порядок очереди ротации"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        order = service.reorder_rotation(scope, data.person_ids)
        return QueueOut(scope=scope_info(scope), person_ids=order)
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Ошибка при изменении порядка очереди: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка изменения порядка очереди: {str(e)}")


@router.post("/queue/move-to-end", response_model=QueueOut)
def move_to_end_of_rotation(
    data: MoveToEndRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Переместить сотрудника в конец очереди"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        order = service.move_to_end_of_rotation(scope, data.person_id)
        return QueueOut(scope=scope_info(scope), person_ids=order)
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Ошибка при перемещении сотрудника {data.person_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка перемещения сотрудника: {str(e)}")


@router.post("/optimize", response_model=OptimizeRotationResponse)
def optimize_rotation(
    data: OptimizeRotationRequest,
    db: Session = Depends(get_db),
    service: RotationService = Depends(get_rotation_service)
):
    """Применить рекомендации статистики к очереди"""
    try:
        scope = service.resolve_scope(data.sector_id, data.service_id)
        changes = service.optimize_rotation(scope, data.start_date, data.end_date)
        return OptimizeRotationResponse(
            scope=scope_info(scope),
            applied_changes=[
                QueueChangeOut(action=c.action, person_ids=c.person_ids, description=c.description)
                for c in changes
            ],
            queue=service.get_queue(scope)
        )
    except RotationError as e:
        raise http_error(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Ошибка при оптимизации очереди: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Ошибка оптимизации очереди: {str(e)}")
