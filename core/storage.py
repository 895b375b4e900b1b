import logging
from contextlib import contextmanager

from django.db import DatabaseError

from .exceptions import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(action: str):
    """
    Re-raise database failures inside the block as StorageError.
    Querysets must be evaluated inside the block for this to apply.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Database failure during %s", action)
        raise StorageError() from exc
