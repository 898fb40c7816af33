from typing import Dict, List, Optional, Sequence
from collections import Counter
from sqlalchemy.orm import Session
from duty_rotation.errors import InvalidOrder, PersonNotInQueue
from duty_rotation.models import RotationQueue, RotationQueueEntry
from duty_rotation.services.directory import OrgDirectory
from duty_rotation.services.scope import Scope
from duty_rotation.services.scope_lock import scope_locks
import logging

logger = logging.getLogger(__name__)


def move_to_end(order: Sequence[int], person_id: int) -> List[int]:
    """Переставить сотрудника в конец очереди"""
    result = [pid for pid in order if pid != person_id]
    result.append(person_id)
    return result


def advance(order: Sequence[int], n: int) -> List[int]:
    """Перенести n первых сотрудников в хвост очереди"""
    if not order:
        return []
    n = n % len(order)
    return list(order[n:]) + list(order[:n])


def reconcile(stored: Sequence[int], eligible: Sequence[int]) -> List[int]:
    """
    Удалить устаревшие записи и дописать новых допущенных сотрудников
    
    Порядок оставшихся сохраняется, новые добавляются в конец в порядке справочника.
    """
    eligible_set = set(eligible)
    result = [pid for pid in stored if pid in eligible_set]
    present = set(result)
    result.extend(pid for pid in eligible if pid not in present)
    return result


class RotationQueueService:
    """Очередь ротации области: порядок приоритета будущих назначений"""
    
    def __init__(self, db: Session, directory: Optional[OrgDirectory] = None):
        self.db = db
        self.directory = directory or OrgDirectory(db)
    
    def _find_queue(self, scope: Scope) -> Optional[RotationQueue]:
        query = self.db.query(RotationQueue).filter(RotationQueue.sector_id == scope.sector_id)
        if scope.service_id is None:
            query = query.filter(RotationQueue.service_id.is_(None))
        else:
            query = query.filter(RotationQueue.service_id == scope.service_id)
        return query.first()
    
    def _eligible_ids(self, scope: Scope) -> List[int]:
        return [person.id for person in self.directory.list_eligible_people(scope)]
    
    def _stored_order(self, queue: RotationQueue) -> List[int]:
        return [entry.person_id for entry in sorted(queue.entries, key=lambda e: e.position)]
    
    def _initialize(self, scope: Scope) -> RotationQueue:
        """Создать очередь из текущего списка допущенных сотрудников"""
        with scope_locks.hold(scope):
            queue = self._find_queue(scope)
            if queue:
                return queue
            
            eligible = self._eligible_ids(scope)
            queue = RotationQueue(
                site_id=scope.site_id,
                sector_id=scope.sector_id,
                service_id=scope.service_id
            )
            self.db.add(queue)
            self.db.flush()
            for position, person_id in enumerate(eligible):
                self.db.add(RotationQueueEntry(queue_id=queue.id, person_id=person_id, position=position))
            self.db.commit()
            self.db.refresh(queue)
            logger.info(f"Создана очередь ротации {scope.label} из {len(eligible)} сотрудников")
            return queue
    
    def get(self, scope: Scope) -> List[int]:
        """
        Получить текущий порядок очереди
        
        Только чтение: блокировка не берется. Пока очередь не сохранена,
        возвращается список допущенных сотрудников. Устаревшие записи не
        возвращаются.
        """
        queue = self._find_queue(scope)
        stored = self._stored_order(queue) if queue else []
        return reconcile(stored, self._eligible_ids(scope))
    
    def sync(self, scope: Scope) -> List[int]:
        """
        Привести сохраненную очередь к текущему списку допущенных (без commit)
        
        Вызывается под блокировкой области перед любым изменением.
        """
        queue = self._find_queue(scope) or self._initialize(scope)
        stored = self._stored_order(queue)
        order = reconcile(stored, self._eligible_ids(scope))
        if order != stored:
            pruned = [pid for pid in stored if pid not in order]
            added = [pid for pid in order if pid not in stored]
            if pruned:
                logger.info(f"Из очереди {scope.label} удалены выбывшие сотрудники: {pruned}")
            if added:
                logger.info(f"В очередь {scope.label} добавлены новые сотрудники: {added}")
            self.save_order(scope, order)
        return order
    
    def save_order(self, scope: Scope, order: Sequence[int]) -> None:
        """Записать порядок очереди (без commit)"""
        queue = self._find_queue(scope) or self._initialize(scope)
        entries: Dict[int, RotationQueueEntry] = {entry.person_id: entry for entry in queue.entries}
        wanted = set(order)
        
        for person_id, entry in entries.items():
            if person_id not in wanted:
                queue.entries.remove(entry)
        
        for position, person_id in enumerate(order):
            entry = entries.get(person_id)
            if entry is None:
                queue.entries.append(RotationQueueEntry(person_id=person_id, position=position))
            else:
                entry.position = position
        
        self.db.flush()
    
    def reorder(self, scope: Scope, new_order: List[int]) -> List[int]:
        """
        Заменить порядок очереди
        
        Новый порядок должен быть перестановкой текущего множества
        допущенных сотрудников: дубли, пропуски и посторонние отклоняются
        целиком, очередь при этом не меняется.
        """
        current = self.sync(scope)
        current_set = set(current)
        
        problems = []
        duplicates = sorted(pid for pid, count in Counter(new_order).items() if count > 1)
        if duplicates:
            problems.append(f"повторяются {duplicates}")
        missing = sorted(current_set - set(new_order))
        if missing:
            problems.append(f"отсутствуют {missing}")
        foreign = sorted(set(new_order) - current_set)
        if foreign:
            problems.append(f"не входят в ротацию {foreign}")
        
        if problems:
            self.db.rollback()
            raise InvalidOrder(
                "Новый порядок не является перестановкой очереди: " + "; ".join(problems),
                scope=scope
            )
        
        self.save_order(scope, new_order)
        self.db.commit()
        logger.info(f"Порядок очереди {scope.label} изменен: {new_order}")
        return list(new_order)
    
    def move_to_end(self, scope: Scope, person_id: int) -> List[int]:
        """Переставить сотрудника в конец очереди; если он уже последний - ничего не делать"""
        current = self.sync(scope)
        if person_id not in current:
            self.db.rollback()
            raise PersonNotInQueue(f"Сотрудник {person_id} отсутствует в очереди", scope=scope)
        
        if current[-1] == person_id:
            self.db.commit()
            return current
        
        order = move_to_end(current, person_id)
        self.save_order(scope, order)
        self.db.commit()
        logger.info(f"Сотрудник {person_id} перемещен в конец очереди {scope.label}")
        return order
    
    def advance(self, scope: Scope, n: int) -> List[int]:
        """Сдвинуть очередь: n первых сотрудников уходят в хвост"""
        order = advance(self.sync(scope), n)
        self.save_order(scope, order)
        self.db.commit()
        logger.info(f"Очередь {scope.label} сдвинута на {n}")
        return order
