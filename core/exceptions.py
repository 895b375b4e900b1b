# core/exceptions.py
"""
Errors raised by the learning engine services.
Views map them to HTTP responses; the services never retry.
"""


class LearningEngineError(Exception):
    """Base exception for the engine"""
    code = "engine_error"


class ValidationError(LearningEngineError):
    """
    Unrecognized filter or outcome value.
    The message always carries the offending value.
    """
    code = "validation_error"

    def __init__(self, message, value=None):
        self.value = value
        super().__init__(message)


class NotFoundError(LearningEngineError):
    """Referenced entry does not exist."""
    code = "not_found"

    def __init__(self, message="resource not found"):
        super().__init__(message)


class StorageError(LearningEngineError):
    """
    The database is unreachable or a statement failed.
    The underlying DatabaseError is chained as __cause__.
    """
    code = "database_error"

    def __init__(self, message="database error"):
        super().__init__(message)
