# app/crud.py
"""Replace-all loader for the `imoveis` table.

`replace_listings` clears the table and inserts a whole import inside one
transaction: readers see either the previous contents or the new ones,
never a mix. Imports are serialized, in process by a lock and on PostgreSQL
by an exclusive table lock held until commit.
"""
import threading
import time
from typing import Iterable, List, Optional, Dict, Any
from sqlalchemy import insert, delete, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from .errors import StorageError, ImportTimeoutError
from .models import Imovel
from .schemas import NormalizedListing
from .utils import logger

# PostgreSQL: query_canceled (statement_timeout), lock_not_available (lock_timeout)
TIMEOUT_PGCODES = {"57014", "55P03"}

# psycopg2 caps a statement at 65535 bind parameters
MAX_BIND_PARAMS = 65535

_import_lock = threading.Lock()


class ListingBatch:
    """Collects typed rows and renders them as multi-row INSERT statements."""

    def __init__(self, table=Imovel.__table__, max_params: Optional[int] = None):
        self.table = table
        max_params = max_params or MAX_BIND_PARAMS
        columns = len([c for c in table.columns if not c.primary_key])
        self.rows_per_statement = max(1, max_params // columns)
        self._rows: List[Dict[str, Any]] = []

    def __len__(self):
        return len(self._rows)

    def add(self, listing: NormalizedListing):
        self._rows.append(listing.to_row())

    def extend(self, listings: Iterable[NormalizedListing]):
        for listing in listings:
            self.add(listing)

    def statements(self):
        for start in range(0, len(self._rows), self.rows_per_statement):
            chunk = self._rows[start:start + self.rows_per_statement]
            yield insert(self.table).values(chunk)


def _is_postgres(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def _clear_table(db: Session, table_name: str):
    if _is_postgres(db):
        db.execute(text(f"LOCK TABLE {table_name} IN ACCESS EXCLUSIVE MODE"))
        db.execute(text(f"TRUNCATE TABLE {table_name} RESTART IDENTITY"))
    else:
        # sqlite reuses max(rowid)+1, so an emptied table starts again at 1
        db.execute(delete(Imovel.__table__))


class Deadline:
    """One time budget shared by every step of an import."""

    def __init__(self, timeout: Optional[float], clock=None):
        self.timeout = timeout
        self.clock = clock or time.monotonic
        self.expires = self.clock() + timeout if timeout else None

    def remaining(self) -> Optional[float]:
        if self.expires is None:
            return None
        return self.expires - self.clock()

    def check(self, step: str) -> Optional[float]:
        left = self.remaining()
        if left is not None and left <= 0:
            raise ImportTimeoutError(f"import exceeded {self.timeout}s before {step}")
        return left


def _set_timeout(db: Session, setting: str, seconds: Optional[float]):
    if seconds is None or not _is_postgres(db):
        return
    ms = max(1, int(seconds * 1000))
    db.execute(text(f"SET LOCAL {setting} = {ms}"))


def _translate(e: SQLAlchemyError):
    pgcode = getattr(getattr(e, "orig", None), "pgcode", None)
    if pgcode in TIMEOUT_PGCODES:
        return ImportTimeoutError(f"storage operation timed out: {e.orig}")
    detail = getattr(e, "orig", None) or e
    return StorageError(f"{type(e).__name__}: {detail}")


def replace_listings(db: Session, listings: Iterable[NormalizedListing],
                     timeout: Optional[float] = None, clock=None) -> int:
    """Atomically replace every row of `imoveis` with `listings`.

    Returns the number of rows inserted. An empty `listings` empties the
    table. `timeout` bounds the whole import, waiting for a concurrent
    import included. On failure nothing is committed and `StorageError` or
    `ImportTimeoutError` is raised.
    """
    batch = ListingBatch()
    batch.extend(listings)

    deadline = Deadline(timeout, clock)
    left = deadline.remaining()
    if not _import_lock.acquire(timeout=-1 if left is None else max(0.0, left)):
        raise ImportTimeoutError(f"another import still running after {timeout}s")
    try:
        try:
            _set_timeout(db, "lock_timeout", deadline.check("clearing"))
            _set_timeout(db, "statement_timeout", deadline.remaining())
            _clear_table(db, Imovel.__tablename__)
            for stmt in batch.statements():
                # each statement only gets what is left of the budget
                _set_timeout(db, "statement_timeout", deadline.check("inserting"))
                db.execute(stmt)
            db.commit()
        except Exception as e:
            db.rollback()
            if isinstance(e, SQLAlchemyError):
                raise _translate(e) from e
            raise
    finally:
        _import_lock.release()

    logger.info("Replaced imoveis with %d rows", len(batch))
    return len(batch)

