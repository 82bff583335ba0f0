import contextlib
import logging

from database.repository import CricketRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def cricket_uow(session_factory):
    """Per-unit-of-work transaction scope.

    Yields a CricketRepository bound to a fresh Session from session_factory.
    Commits on success, rolls back on exception, always closes.

    Usage:
        with cricket_uow(db.SessionLocal) as repo:
            match = repo.matches.get_by_external_id(external_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = session_factory()
    try:
        repo = CricketRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
