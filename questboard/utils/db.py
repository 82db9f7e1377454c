"""Transaction helpers."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from questboard import db
from questboard.exceptions import ConcurrentModification

logger = logging.getLogger(__name__)


@contextmanager
def atomic(resource: str = "daily_quest"):
    """Commit everything done in the block at once, or nothing.

    A stale version (another writer committed first) or a unique constraint
    hit by a racing insert surfaces as ConcurrentModification. Any other error
    rolls back and propagates unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except (StaleDataError, IntegrityError) as e:
        db.session.rollback()
        logger.warning(f"Concurrent write detected on {resource}: {e}")
        raise ConcurrentModification(resource) from e
    except Exception:
        db.session.rollback()
        raise
