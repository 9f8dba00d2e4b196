# core/storage.py
"""
Persistence port used by every service.

Services only talk to :class:`Storage`; two adapters implement it:

* :class:`MemoryStorage` keeps entities in a process-local keyed store.
  Calls are serialised by a lock, and a transaction holds it until it ends,
  so one request never rolls back rows another request wrote. Nothing is
  shared across processes.
* :class:`SqlStorage` wraps a SQLModel ``Session``.

``transaction()`` groups several writes so they commit together or not at all.
"""
import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class Storage(Protocol):
    def get(self, model: Type[ModelT], entity_id: str, for_update: bool = False) -> Optional[ModelT]: ...

    def put(self, entity: ModelT) -> ModelT: ...

    def delete(self, entity: SQLModel) -> None: ...

    def query(self, model: Type[ModelT], **filters: Any) -> List[ModelT]: ...

    def transaction(self): ...


# ============================================================
# In-memory adapter
# ============================================================
class MemoryStorage:
    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._snapshots: List[Dict[str, Dict[str, Dict[str, Any]]]] = []
        # One request thread at a time; a transaction holds it until it ends
        self._lock = threading.RLock()

    def _table(self, model: Type[SQLModel]) -> Dict[str, Dict[str, Any]]:
        return self._tables.setdefault(model.__tablename__, {})

    @staticmethod
    def _load(model: Type[ModelT], row: Dict[str, Any]) -> ModelT:
        # Callers get detached copies; changes persist only through put().
        return model(**copy.deepcopy(row))

    def get(self, model: Type[ModelT], entity_id: str, for_update: bool = False) -> Optional[ModelT]:
        with self._lock:
            row = self._table(model).get(entity_id)
            return self._load(model, row) if row is not None else None

    def put(self, entity: ModelT) -> ModelT:
        with self._lock:
            self._table(type(entity))[entity.id] = copy.deepcopy(entity.model_dump())
        return entity

    def delete(self, entity: SQLModel) -> None:
        with self._lock:
            self._table(type(entity)).pop(entity.id, None)

    def query(self, model: Type[ModelT], **filters: Any) -> List[ModelT]:
        with self._lock:
            return [
                self._load(model, row)
                for row in self._table(model).values()
                if all(row.get(field) == value for field, value in filters.items())
            ]

    @contextmanager
    def transaction(self) -> Iterator["MemoryStorage"]:
        with self._lock:
            self._snapshots.append(copy.deepcopy(self._tables))
            try:
                yield self
            except Exception:
                self._tables = self._snapshots.pop()
                raise
            else:
                self._snapshots.pop()

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()


# ============================================================
# SQL adapter
# ============================================================
class SqlStorage:
    def __init__(self, session: Session) -> None:
        self.session = session
        self._depth = 0

    def get(self, model: Type[ModelT], entity_id: str, for_update: bool = False) -> Optional[ModelT]:
        if for_update:
            # Re-read the row and lock it (FOR UPDATE is a no-op on SQLite)
            return self.session.get(model, entity_id, with_for_update=True, populate_existing=True)
        return self.session.get(model, entity_id)

    def put(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        if self._depth:
            self.session.flush()
            return entity
        self._commit()
        self.session.refresh(entity)
        return entity

    def delete(self, entity: SQLModel) -> None:
        self.session.delete(entity)
        if self._depth:
            self.session.flush()
        else:
            self._commit()

    def query(self, model: Type[ModelT], **filters: Any) -> List[ModelT]:
        statement = select(model)
        for field, value in filters.items():
            statement = statement.where(getattr(model, field) == value)
        return list(self.session.exec(statement).all())

    @contextmanager
    def transaction(self) -> Iterator["SqlStorage"]:
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if not self._depth:
                self.session.rollback()
            raise
        self._depth -= 1
        if not self._depth:
            self._commit()

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("❌ Database commit failed; transaction rolled back")
            raise
