import os
from contextlib import contextmanager
from typing import Iterator, Optional

from filelock import FileLock, Timeout
from sqlalchemy.orm import Session

from marketplace.config import settings
from marketplace.exceptions import InternalError
from marketplace.utils.logging import get_logger
from marketplace.utils.transactions import HELD_LOCKS_KEY, in_owned_transaction

logger = get_logger(__name__)


def _lock_path(key: str) -> str:
    os.makedirs(settings.LOCKS_DIR, exist_ok=True)
    return os.path.join(settings.LOCKS_DIR, f"{key}.lock")


@contextmanager
def user_lock(
    user_id: int, session: Optional[Session] = None, timeout: Optional[float] = None
) -> Iterator[None]:
    """
    Serialize cart and purchase work for one user.

    Each call opens its own FileLock, so it excludes other threads as well as
    other worker processes on the same host. Waiting is bounded by
    LOCK_TIMEOUT_SECONDS.

    With ``session``, take the lock inside the transaction that does the work:
    if that transaction is still open when the block exits, the lock stays
    held until its outermost commit or rollback. A session that already holds
    the user's lock reuses it. Without a session the lock is not re-entrant.
    """
    key = f"user_{user_id}"
    held = session.info.setdefault(HELD_LOCKS_KEY, {}) if session is not None else None
    if held is not None and key in held:
        yield
        return

    if timeout is None:
        timeout = settings.LOCK_TIMEOUT_SECONDS
    lock = FileLock(_lock_path(key))
    try:
        lock.acquire(timeout=timeout)
    except Timeout:
        logger.warning("Timed out waiting for lock on user %s", user_id)
        raise InternalError(f"User {user_id} is busy, try again")

    if held is None:
        try:
            yield
        finally:
            lock.release()
        return

    held[key] = lock
    try:
        yield
    finally:
        if not in_owned_transaction(session):
            # the transaction already ended; release unless its end hook did
            if held.pop(key, None) is not None:
                lock.release()
