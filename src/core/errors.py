"""Error types raised at the handler and storage boundaries.

The scoring functions themselves never raise: missing data is "no signal".
"""


class TalentMatchError(Exception):
    """Base class for all talentmatch errors."""


class AuthorizationError(TalentMatchError):
    """Caller has no session or lacks the role required for the operation."""


class StorageError(TalentMatchError):
    """The storage collaborator failed to answer a query."""
