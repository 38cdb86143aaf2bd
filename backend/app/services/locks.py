from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
import logging
import threading

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.routine import SemesterRoutine

logger = logging.getLogger(__name__)

_TX_DEPTH_KEY = "routine_tx_depth"

_registry_lock = threading.Lock()
_semester_locks: dict[str, threading.RLock] = {}


def _lock_for(semester_id: str) -> threading.RLock:
    with _registry_lock:
        lock = _semester_locks.get(semester_id)
        if lock is None:
            lock = threading.RLock()
            _semester_locks[semester_id] = lock
        return lock


@contextmanager
def semester_transaction(db: Session, semester_id: str) -> Iterator[Session]:
    """Serialize writers of one semester's template and overrides.

    Holds an in-process lock for the semester plus a row lock on
    ``semester_routines`` where the dialect supports it. Only the outermost
    block commits, so an approval that replays a change through the router
    still lands as a single transaction.
    """
    lock = _lock_for(semester_id)
    with lock:
        depth = db.info.get(_TX_DEPTH_KEY, 0)
        db.info[_TX_DEPTH_KEY] = depth + 1
        try:
            if depth == 0 and db.get_bind().dialect.name != "sqlite":
                db.execute(
                    select(SemesterRoutine.semester_id)
                    .where(SemesterRoutine.semester_id == semester_id)
                    .with_for_update()
                )
            yield db
            if depth == 0:
                db.commit()
        except Exception:
            if depth == 0:
                db.rollback()
                logger.debug("Rolled back routine transaction for %s", semester_id, exc_info=True)
            raise
        finally:
            db.info[_TX_DEPTH_KEY] = depth


@contextmanager
def semesters_transaction(db: Session, semester_ids: Iterable[str]) -> Iterator[Session]:
    """``semester_transaction`` over several semesters, acquired in sorted order."""
    with ExitStack() as stack:
        for semester_id in sorted(set(semester_ids)):
            stack.enter_context(semester_transaction(db, semester_id))
        yield db


def known_semester_ids(db: Session) -> list[str]:
    return list(db.execute(select(SemesterRoutine.semester_id)).scalars())
