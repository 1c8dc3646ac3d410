# Overview: Row-locking helper shared by the transactional service operations.

from __future__ import annotations


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but PostgreSQL will honor it.
    """
    return query.with_for_update()
