"""
Record store — generic table access over SQLAlchemy.

Callers address tables by name and exchange plain dicts; no ORM objects leak
out of this module. Each call opens and closes its own session unless the
store was handed out by transaction(), in which case every call shares one
session that commits (or rolls back) when the block exits.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import inspect, select, update as sa_update

from sizzle import database
from sizzle.exceptions import RecordNotFoundError
from sizzle.models.assignment import CoachingProgram, ProgramSession, UserAssignment
from sizzle.models.call_attempt import CallAttempt
from sizzle.models.performance_metric import PerformanceMetric
from sizzle.models.pipeline_entry import PipelineEntry
from sizzle.models.profile import Profile
from sizzle.models.sales_credit import SalesCredit

logger = logging.getLogger('services.store')

TABLES = {
    'profiles': Profile,
    'pipeline_entries': PipelineEntry,
    'call_attempts': CallAttempt,
    'performance_metrics': PerformanceMetric,
    'sales_credits': SalesCredit,
    'coaching_programs': CoachingProgram,
    'program_sessions': ProgramSession,
    'user_assignments': UserAssignment,
}


def row_to_dict(obj) -> Dict[str, Any]:
    """Column values of an ORM instance as a plain dict."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class RecordStore:
    """
    insert / update / select_one / find_one / select_many / increment over named tables.

    Usage:
        store = RecordStore()
        entry = store.select_one('pipeline_entries', {'id': entry_id})

        with store.transaction() as tx:
            record = tx.find_one('performance_metrics', {...})
            tx.increment('performance_metrics', record['id'], 'sales_amount', 250.0)
    """

    def __init__(self, session_factory=None, session=None):
        self._session_factory = session_factory
        self._bound = session

    def _new_session(self):
        if self._session_factory is not None:
            return self._session_factory()
        return database.get_session()

    @contextmanager
    def _session(self):
        if self._bound is not None:
            yield self._bound
            self._bound.flush()
            return

        session = self._new_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self):
        """Yield a store bound to one session; commit on success, roll back on error."""
        if self._bound is not None:
            # Already inside a transaction — join it
            yield self
            return

        session = self._new_session()
        try:
            yield RecordStore(session=session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _model(table: str):
        model = TABLES.get(table)
        if model is None:
            raise ValueError(f"Unknown table '{table}'")
        return model

    @staticmethod
    def _column(model, name: str):
        if name not in model.__table__.columns:
            raise ValueError(f"Unknown column '{name}' on {model.__tablename__}")
        return getattr(model, name)

    def _where(self, stmt, model, filters: Optional[Dict[str, Any]]):
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            elif value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _order(self, stmt, model, order_by: Union[str, Iterable[str], None]):
        if not order_by:
            return stmt
        if isinstance(order_by, str):
            order_by = [order_by]
        for name in order_by:
            if name.startswith('-'):
                stmt = stmt.order_by(self._column(model, name[1:]).desc())
            else:
                stmt = stmt.order_by(self._column(model, name).asc())
        return stmt

    # ── Operations ────────────────────────────────────────────────────

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        for name in row:
            self._column(model, name)
        with self._session() as session:
            obj = model(**row)
            session.add(obj)
            session.flush()
            result = row_to_dict(obj)
        logger.debug("Inserted %s %s", table, result.get('id'))
        return result

    def update(self, table: str, id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        with self._session() as session:
            obj = session.get(model, id)
            if obj is None:
                raise RecordNotFoundError(table, {'id': id})
            for name, value in changes.items():
                self._column(model, name)
                setattr(obj, name, value)
            session.flush()
            return row_to_dict(obj)

    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """First row matching filters, or None."""
        model = self._model(table)
        with self._session() as session:
            stmt = self._where(select(model), model, filters).limit(1)
            obj = session.execute(stmt).scalars().first()
            return row_to_dict(obj) if obj is not None else None

    def select_one(self, table: str, filters: Dict[str, Any]) -> Dict[str, Any]:
        """First row matching filters; raises RecordNotFoundError when there is none."""
        row = self.find_one(table, filters)
        if row is None:
            raise RecordNotFoundError(table, filters)
        return row

    def select_many(
        self, table: str, filters: Optional[Dict[str, Any]] = None,
        order_by: Union[str, Iterable[str], None] = None, limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        model = self._model(table)
        with self._session() as session:
            stmt = self._order(self._where(select(model), model, filters), model, order_by)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [row_to_dict(obj) for obj in session.execute(stmt).scalars().all()]

    def increment(self, table: str, id: Any, column: str, amount) -> Dict[str, Any]:
        """Atomic `column = column + amount` in a single UPDATE statement."""
        model = self._model(table)
        col = self._column(model, column)
        with self._session() as session:
            result = session.execute(
                sa_update(model)
                .where(model.id == id)
                .values({column: col + amount})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(table, {'id': id})
            obj = session.get(model, id, populate_existing=True)
            return row_to_dict(obj)
