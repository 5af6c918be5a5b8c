"""Persistence layer: users and health-data readings over asyncpg.

Re-exports all public symbols so that ``from healthtrack.storage import X``
works for every storage function.
"""

from healthtrack.storage._helpers import RecordNotFoundError
from healthtrack.storage.readings import (
    UPDATABLE_FIELDS,
    delete_reading,
    insert_reading,
    query_by_user,
    query_latest_by_user,
    update_reading,
)
from healthtrack.storage.users import (
    DuplicateEmailError,
    DuplicateUsernameError,
    User,
    create_user,
    get_user_by_email,
    get_user_by_id,
    verify_user,
)

__all__ = [
    "UPDATABLE_FIELDS",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "RecordNotFoundError",
    "User",
    "create_user",
    "delete_reading",
    "get_user_by_email",
    "get_user_by_id",
    "insert_reading",
    "query_by_user",
    "query_latest_by_user",
    "update_reading",
    "verify_user",
]
