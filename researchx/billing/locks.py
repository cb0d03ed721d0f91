import logging
from contextlib import contextmanager

from redis.exceptions import LockError

from researchx.errors import ConflictError
from researchx.extensions import get_redis_client

logger = logging.getLogger(__name__)


class SettlementInProgress(ConflictError):
    pass


@contextmanager
def settlement_lock(project_id: str, ttl: int = 300, client=None):
    """
    Non-blocking Redis lock around one project's settlement.

    Without Redis configured this is a no-op and only the database row
    lock applies.
    """
    client = client if client is not None else get_redis_client()
    if client is None:
        yield
        return

    lock = client.lock(f"settlement:{project_id}", timeout=ttl)
    if not lock.acquire(blocking=False):
        raise SettlementInProgress("Payment verification already in progress")

    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            logger.warning(f"Settlement lock for {project_id} expired before release")
