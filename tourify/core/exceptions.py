"""Account identity error taxonomy."""
from typing import Optional


class AccountError(Exception):
    """Base class for account identity errors."""


class InvalidAccountType(AccountError):
    """Requested account type is not supported for the operation."""

    def __init__(self, account_type: str, allowed: Optional[tuple] = None):
        self.account_type = account_type
        self.allowed = allowed
        message = f"Invalid account type: {account_type!r}"
        if allowed:
            message += f" (expected one of {', '.join(allowed)})"
        super().__init__(message)


class ProfileNotFound(AccountError):
    """The user has no profile backing the requested account type.

    Recoverable: the user should be prompted to create the profile.
    """

    def __init__(self, message: str, account_type: Optional[str] = None):
        self.account_type = account_type
        super().__init__(message)


class AccountConflict(AccountError):
    """Unique (owner, type) violation during find-or-create.

    Settled inside the store by re-reading the winning row.
    """


class AccountNotFound(AccountError):
    """No account exists with the given id."""


class TransientStoreError(AccountError):
    """The record store is unavailable; the whole operation may be retried."""


class OwnershipViolation(AccountError):
    """An action targeted an account or profile the user does not own."""

    def __init__(self, user_id: str, target_id: str, action: str):
        self.user_id = user_id
        self.target_id = target_id
        self.action = action
        super().__init__(f"User {user_id} may not {action} {target_id}")
