from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator, Optional
from duty_rotation.config import settings
from duty_rotation.errors import Busy
from duty_rotation.services.scope import Scope
import threading
import logging

logger = logging.getLogger(__name__)


class ScopeLockRegistry:
    """
    Эксклюзивные блокировки по областям ротации
    
    Все изменения очереди и назначений одной области выполняются
    последовательно. Ожидание ограничено таймаутом, по истечении
    которого вызывающий получает Busy. Блокировка реентерабельна
    в пределах потока.
    """
    
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, Any] = {}
    
    def _lock_for(self, key: Hashable):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock
    
    @contextmanager
    def hold(self, scope: Scope, timeout: Optional[float] = None) -> Iterator[None]:
        wait = settings.scope_lock_timeout_seconds if timeout is None else timeout
        lock = self._lock_for((scope.sector_id, scope.service_id))
        if not lock.acquire(timeout=wait):
            logger.warning(f"Таймаут ожидания блокировки {scope.label} ({wait} с)")
            raise Busy(f"Область занята другой операцией, повторите позже (ожидание {wait} с)", scope=scope)
        try:
            yield
        finally:
            lock.release()


scope_locks = ScopeLockRegistry()
