"""
Error taxonomy shared by the registry, the match workflow and the HTTP layer.

Every error carries the HTTP status it maps to; the API renders them all as
``{"error": message}``.
"""


class GroupRankError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GroupRankError):
    """Malformed group code, wrong player count, empty or duplicate names."""
    status_code = 400


class NotFoundError(GroupRankError):
    """Unknown group code."""
    status_code = 404


class ConflictError(GroupRankError):
    """A group with this code already exists."""
    status_code = 400


class PersistenceError(GroupRankError):
    """The sheet store failed or returned something unusable."""
    status_code = 500


class StaleWriteError(PersistenceError):
    """A versioned write lost the race against another writer."""
