"""Posting identity resolution.

Turns "post as artist" into the concrete account id and display snapshot to
stamp onto new content. Attribution is mandatory: any failure before the
account is known aborts the caller. Display info is best-effort.
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourify.core.exceptions import ProfileNotFound, TransientStoreError
from tourify.models.account import AccountType, POSTING_ACCOUNT_TYPES
from tourify.models.profile import PROFILE_MODELS_BY_TYPE, profile_table_for
from tourify.schemas.account import DisplayInfo, PostingIdentity
from tourify.services.account_store import AccountStore, validate_account_type
from tourify.services.display_projector import DisplayProjector, project_profile
from tourify.services.error_handling import store_errors

logger = logging.getLogger(__name__)


class AttributionResolver:
    """Resolves which account a user's new content is attributed to."""

    def __init__(self, db: Session, store: AccountStore, projector: DisplayProjector):
        self.db = db
        self.store = store
        self.projector = projector

    def resolve_posting_identity(self, user_id: str, requested_account_type: Any) -> PostingIdentity:
        """
        Find or create the account to post as and its display snapshot.

        Args:
            user_id: Authenticated user
            requested_account_type: primary, artist or venue

        Returns:
            PostingIdentity to stamp onto the new content

        Raises:
            InvalidAccountType: Type is not a posting type (admin included)
            ProfileNotFound: The user has no profile of that type
            TransientStoreError: Record store unavailable; retry the whole call
        """
        account_type = validate_account_type(requested_account_type, POSTING_ACCOUNT_TYPES)

        profile = self.locate_profile(user_id, account_type)
        if profile is None:
            raise ProfileNotFound(
                f"Unable to verify {account_type} account for posting",
                account_type=account_type
            )

        account_id = self.store.find_or_create_account(
            user_id, account_type, profile_table_for(account_type), profile.id
        )
        display_info = self._display_info(account_id, account_type, profile)

        logger.debug(f"Resolved {account_type} posting identity {account_id} for user {user_id}")
        return PostingIdentity(account_id=account_id, account_type=account_type, display_info=display_info)

    def locate_profile(self, user_id: str, account_type: str) -> Optional[Any]:
        """The profile of this type owned by the user, oldest first when several exist."""
        model = PROFILE_MODELS_BY_TYPE[account_type]
        with store_errors(self.db, f"locate {account_type} profile for {user_id}"):
            if account_type == AccountType.PRIMARY.value:
                return self.db.get(model, user_id)
            result = self.db.execute(
                select(model)
                .where(model.user_id == user_id)
                .order_by(model.created_at.asc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    def _display_info(self, account_id: str, account_type: str, profile: Any) -> DisplayInfo:
        cached = self.projector.cached_display_info(account_id)
        if cached is not None:
            return cached
        try:
            return self.projector.refresh_display_info(account_id)
        except TransientStoreError as e:
            # Attribution is settled; fall back to what the profile already says
            logger.warning(
                f"Display refresh failed for account {account_id}, projecting from profile: {str(e)}"
            )
            return project_profile(account_type, profile)
