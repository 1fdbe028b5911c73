from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransactionOrigin

# session.info key for locks released when the outermost transaction ends
HELD_LOCKS_KEY = "marketplace.held_locks"


def in_owned_transaction(session: Session) -> bool:
    """
    True when someone has explicitly begun a transaction on the session, or
    has pending changes in the one the session started by itself.
    """
    tx = session.get_transaction()
    if tx is None:
        return False
    if tx.origin is SessionTransactionOrigin.AUTOBEGIN:
        return bool(session.new or session.dirty or session.deleted)
    return True


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    Run the block as one unit of work on ``session``.

    Inside a transaction the caller owns, the block becomes a SAVEPOINT and
    the caller's commit makes it durable. Otherwise the block gets its own
    transaction that commits on exit. A read-only transaction the session
    started by itself (autobegin) is closed first, so the work never ends up
    in a transaction nobody commits.

    Any exception raised inside the block rolls back everything done in it.

        with smart_transaction(db):
            ... DB work ...
    """
    if in_owned_transaction(session):
        cm = session.begin_nested()
    else:
        if session.in_transaction():
            session.commit()
        cm = session.begin()
    with cm:
        yield session


@event.listens_for(Session, "after_transaction_end")
def _release_held_locks(session, transaction):
    if transaction.parent is not None:
        return
    held = session.info.pop(HELD_LOCKS_KEY, None) or {}
    while held:
        _, lock = held.popitem()
        lock.release()
