"""Active-account selection per user.

The selection is explicit request context: callers pass the user id and the
tracker reads or writes the persisted selection. There is no module-level
"current account".
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourify.core.exceptions import TransientStoreError
from tourify.models.account import Account, AccountType
from tourify.models.session import ActiveAccountSelection
from tourify.services.account_store import AccountStore, ownership_violation
from tourify.services.error_handling import store_errors
from tourify.services.event_bus import ACCOUNTS_CHANNEL, EventBus

logger = logging.getLogger(__name__)


class ActiveAccountTracker:
    def __init__(self, db: Session, store: AccountStore, event_bus: Optional[EventBus] = None):
        self.db = db
        self.store = store
        self.event_bus = event_bus

    def get_active_account(self, user_id: str) -> Optional[Account]:
        """Current selection, else the primary account, else the first account listed."""
        selection = self._get_selection(user_id)
        if selection is not None:
            account = self.store.get_account(selection.active_account_id)
            if self._is_selectable(user_id, account):
                return account
            logger.info(f"Ignoring stale selection {selection.active_account_id} for user {user_id}")

        accounts = self.store.list_accounts(user_id)
        for account in accounts:
            if account.account_type == AccountType.PRIMARY.value:
                return account
        return accounts[0] if accounts else None

    def switch_account(self, user_id: str, account_id: str) -> bool:
        """
        Make ``account_id`` the user's active account.

        Either the selection is fully updated or it is left as it was.

        Returns:
            False when the account does not exist or is inactive

        Raises:
            OwnershipViolation: The account belongs to another user
            TransientStoreError: Record store unavailable
        """
        account = self.store.get_account(account_id)
        if account is None or not account.is_active:
            logger.info(f"Refusing switch of user {user_id} to unavailable account {account_id}")
            return False
        if account.owner_user_id != user_id:
            raise ownership_violation(user_id, account_id, "switch to")

        try:
            self._write_selection(user_id, account)
        except IntegrityError:
            # A concurrent first switch created the row; update it instead
            self.db.rollback()
            try:
                self._write_selection(user_id, account)
            except IntegrityError as e:
                self.db.rollback()
                logger.error(f"Selection for user {user_id} still conflicting after retry: {str(e)}")
                raise TransientStoreError(f"Could not switch user {user_id} to account {account_id}") from e

        logger.info(f"User {user_id} switched to {account.account_type} account {account_id}")
        if self.event_bus:
            self.event_bus.publish(ACCOUNTS_CHANNEL, "update", {
                "user_id": user_id,
                "active_account_id": account_id,
                "account_type": account.account_type,
            })
        return True

    def clear_selection(self, user_id: str) -> None:
        """Drop the selection at session end."""
        with store_errors(self.db, f"clear selection for {user_id}"):
            selection = self.db.get(ActiveAccountSelection, user_id)
            if selection is not None:
                self.db.delete(selection)
                self.db.commit()

    def _write_selection(self, user_id: str, account: Account) -> None:
        with store_errors(self.db, f"switch user {user_id} to account {account.id}"):
            selection = self.db.get(ActiveAccountSelection, user_id)
            previous_account_id = selection.active_account_id if selection is not None else None
            if selection is None:
                selection = ActiveAccountSelection(user_id=user_id)
                self.db.add(selection)
            selection.active_account_id = account.id
            selection.last_switched_at = datetime.utcnow()
            self.store.log_activity(user_id, account, "switch_account", {
                "from_account_id": previous_account_id,
            })
            self.db.commit()

    def _get_selection(self, user_id: str) -> Optional[ActiveAccountSelection]:
        with store_errors(self.db, f"load selection for {user_id}"):
            return self.db.get(ActiveAccountSelection, user_id)

    @staticmethod
    def _is_selectable(user_id: str, account: Optional[Account]) -> bool:
        return account is not None and account.is_active and account.owner_user_id == user_id
