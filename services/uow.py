from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError

from models import db
from services.errors import TransientStorageConflictError

# PostgreSQL SQLSTATEs for serialization_failure and deadlock_detected
_PG_TRANSIENT_CODES = {"40001", "40P01"}
_SQLITE_TRANSIENT_MESSAGES = ("database is locked", "database table is locked")


def is_transient_storage_error(exc: BaseException) -> bool:
    if isinstance(exc, TransientStorageConflictError):
        return True
    if not isinstance(exc, DBAPIError):
        return False

    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _PG_TRANSIENT_CODES:
        return True

    text = str(orig).lower()
    return any(msg in text for msg in _SQLITE_TRANSIENT_MESSAGES)


@contextmanager
def unit_of_work(classify=is_transient_storage_error):
    """
    Commit everything done on db.session inside the block, or roll all of it back.
    Storage errors the classifier marks as transient are re-raised as
    TransientStorageConflictError so the retry loop can pick them up.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        if not isinstance(exc, TransientStorageConflictError) and classify(exc):
            raise TransientStorageConflictError(str(exc)) from exc
        raise
