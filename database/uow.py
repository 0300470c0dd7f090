import contextlib
import logging

from database.repository import MarketplaceRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def marketplace_uow(session_factory):
    """Per-unit-of-work transaction scope.

    Yields a MarketplaceRepository bound to a fresh Session from
    ``session_factory`` (``AppContext.session_factory`` in the app). Commits
    on success, rolls back on exception, always closes.

    Usage:
        with marketplace_uow(ctx.session_factory) as repo:
            professional = repo.professionals.get_by_id(professional_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = session_factory()
    try:
        repo = MarketplaceRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
