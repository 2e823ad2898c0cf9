"""Durable account identity records.

Accounts are keyed by ``(owner_user_id, account_type)``. The unique
constraint on that pair settles find-or-create races: a request that loses
the insert race rolls back and re-reads the winner's row.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourify.core.exceptions import (
    AccountConflict, AccountNotFound, InvalidAccountType, OwnershipViolation,
    ProfileNotFound, TransientStoreError
)
from tourify.models.account import (
    Account, AccountType, AdminAccessRequest, CREATABLE_ACCOUNT_TYPES, PERMISSION_KEYS,
    default_permissions
)
from tourify.models.activity import AccountActivity, AccountFollow
from tourify.models.content import Post
from tourify.models.profile import (
    PROFILE_FIELDS, PROFILE_MODELS_BY_TYPE, profile_model_for_table, profile_table_for
)
from tourify.services.display_cache import DisplayInfoCache
from tourify.services.display_projector import DISPLAY_FIELDS, project_profile
from tourify.services.error_handling import store_errors
from tourify.services.event_bus import ACCOUNTS_CHANNEL, EventBus
from tourify.utils.logging import get_security_logger, setup_logger

logger = setup_logger(__name__)
security_logger = get_security_logger()


def validate_account_type(account_type: Any, allowed: tuple = None) -> str:
    """Normalize an account type, rejecting anything outside ``allowed``."""
    allowed = allowed or AccountType.values()
    value = account_type.value if isinstance(account_type, AccountType) else account_type
    if not isinstance(value, str) or value not in allowed:
        raise InvalidAccountType(str(account_type), allowed)
    return value


def ownership_violation(user_id: str, target_id: str, action: str) -> OwnershipViolation:
    """Record a security event and build the error to raise."""
    security_logger.warning(
        f"Ownership violation: user={user_id} action={action} target={target_id}"
    )
    return OwnershipViolation(user_id, target_id, action)


class AccountStore:
    """Find-or-create, listing and lifecycle of accounts."""

    def __init__(
        self,
        db: Session,
        event_bus: Optional[EventBus] = None,
        cache: Optional[DisplayInfoCache] = None
    ):
        self.db = db
        self.event_bus = event_bus
        self.cache = cache

    def find_or_create_account(
        self,
        owner_user_id: str,
        account_type: str,
        profile_table: str,
        profile_id: str
    ) -> str:
        """
        Return the id of the user's account of this type, creating it if absent.

        Args:
            owner_user_id: Authenticated user owning the account
            account_type: primary, artist, venue or admin
            profile_table: Table holding the backing profile
            profile_id: Id of the backing profile

        Returns:
            Account id; the same id for every call with the same owner and type

        Raises:
            InvalidAccountType: Unknown account type
            ProfileNotFound: The profile reference does not resolve
            OwnershipViolation: The profile belongs to another user
            TransientStoreError: Record store unavailable
        """
        account_type = validate_account_type(account_type)

        with store_errors(self.db, f"look up {account_type} account for {owner_user_id}"):
            existing = self._get_by_key(owner_user_id, account_type)
        if existing is not None and existing.is_active:
            return existing.id

        profile = self._load_owned_profile(owner_user_id, account_type, profile_table, profile_id)

        if existing is not None:
            return self._reactivate(existing, profile_table, profile_id, profile).id

        try:
            account = self._insert_account(owner_user_id, account_type, profile_table, profile_id, profile)
        except AccountConflict:
            logger.info(
                f"Lost create race for {account_type} account of {owner_user_id}, re-reading winner"
            )
            with store_errors(self.db, f"re-read {account_type} account for {owner_user_id}"):
                winner = self._get_by_key(owner_user_id, account_type)
            if winner is None:
                raise TransientStoreError(
                    f"Conflicting {account_type} account for {owner_user_id} could not be read back"
                )
            return winner.id

        self._publish("insert", account)
        return account.id

    def create_account(
        self,
        owner_user_id: str,
        account_type: str,
        profile_fields: Optional[Dict[str, Any]] = None
    ) -> Account:
        """
        Create the profile for an artist or venue account and the account on top of it.

        The profile row is only kept if the account ends up pointing at it; a
        user who already has an active account of the type gets that account back.

        Raises:
            InvalidAccountType: Not an artist or venue type
            TransientStoreError: Record store unavailable
        """
        account_type = validate_account_type(account_type, CREATABLE_ACCOUNT_TYPES)
        existing = self.get_account_by_type(owner_user_id, account_type)
        if existing is not None:
            logger.info(f"User {owner_user_id} already has {account_type} account {existing.id}")
            return existing

        model = PROFILE_MODELS_BY_TYPE[account_type]
        fields = {
            key: value for key, value in (profile_fields or {}).items()
            if key in PROFILE_FIELDS[account_type]
        }
        with store_errors(self.db, f"create {account_type} profile for {owner_user_id}"):
            profile = model(user_id=owner_user_id, **fields)
            self.db.add(profile)
            self.db.flush()
            profile_id = profile.id

        account_id = self.find_or_create_account(
            owner_user_id, account_type, model.__tablename__, profile_id
        )
        account = self._require_account(account_id)
        if account.profile_id != profile_id:
            # A concurrent request created the account first; drop the unused profile
            self.db.rollback()
        return account

    def request_admin_access(self, user_id: str, request_fields: Dict[str, Any]) -> AdminAccessRequest:
        """File an admin access request for review; a pending request is returned as is."""
        with store_errors(self.db, f"load admin request for {user_id}"):
            pending = self.db.execute(
                select(AdminAccessRequest).where(
                    AdminAccessRequest.user_id == user_id,
                    AdminAccessRequest.status == "pending"
                )
            ).scalars().first()
        if pending is not None:
            return pending

        with store_errors(self.db, f"file admin request for {user_id}"):
            request = AdminAccessRequest(user_id=user_id, status="pending", **request_fields)
            self.db.add(request)
            self.log_activity(user_id, None, "request_admin_access", {
                "organization": request.organization,
                "role": request.role,
            })
            self.db.commit()
        logger.info(f"Admin access requested by user {user_id} (request {request.id})")
        return request

    def list_accounts(self, owner_user_id: str) -> List[Account]:
        """Active accounts for a user, newest first."""
        with store_errors(self.db, f"list accounts for {owner_user_id}"):
            result = self.db.execute(
                select(Account)
                .where(Account.owner_user_id == owner_user_id, Account.is_active.is_(True))
                .order_by(Account.created_at.desc())
            )
            return list(result.scalars().all())

    def get_account(self, account_id: str) -> Optional[Account]:
        with store_errors(self.db, f"load account {account_id}"):
            return self.db.get(Account, account_id)

    def get_account_by_type(self, owner_user_id: str, account_type: str) -> Optional[Account]:
        account_type = validate_account_type(account_type)
        with store_errors(self.db, f"look up {account_type} account for {owner_user_id}"):
            account = self._get_by_key(owner_user_id, account_type)
        if account is None or not account.is_active:
            return None
        return account

    def has_account_type(self, owner_user_id: str, account_type: str) -> bool:
        return self.get_account_by_type(owner_user_id, account_type) is not None

    def deactivate(self, account_id: str, acting_user_id: Optional[str] = None) -> Account:
        """Soft delete. Attributed content keeps its snapshot."""
        account = self._require_account(account_id)
        if acting_user_id is not None and account.owner_user_id != acting_user_id:
            raise ownership_violation(acting_user_id, account_id, "deactivate")
        if not account.is_active:
            return account

        with store_errors(self.db, f"deactivate account {account_id}"):
            account.is_active = False
            self.log_activity(account.owner_user_id, account, "deactivate_account", {"deactivated": True})
            self.db.commit()
        self._invalidate_display(account_id)
        logger.info(f"Deactivated {account.account_type} account {account_id}")
        self._publish("update", account)
        return account

    def link_existing_account(
        self,
        owner_user_id: str,
        account_type: str,
        profile_table: str,
        profile_id: str,
        permissions: Optional[Dict[str, bool]] = None
    ) -> Account:
        """Attach an existing profile as an account, optionally with custom permissions."""
        account_id = self.find_or_create_account(owner_user_id, account_type, profile_table, profile_id)
        account = self._require_account(account_id)
        if account.profile_table != profile_table or account.profile_id != profile_id:
            # Re-point an existing account at the linked profile
            profile = self._load_owned_profile(owner_user_id, account.account_type, profile_table, profile_id)
            with store_errors(self.db, f"link profile to account {account_id}"):
                account.profile_table = profile_table
                account.profile_id = profile_id
                self._apply_display(account, profile)
                self.db.commit()
            self._invalidate_display(account_id)

        with store_errors(self.db, f"link account {account_id}"):
            if permissions:
                account.permissions = self._merge_permissions(account.permissions, permissions)
            self.log_activity(
                owner_user_id, account, "link_account",
                {"linked_existing": True, "profile_table": profile_table, "profile_id": profile_id}
            )
            self.db.commit()
        self._publish("update", account)
        return account

    def update_permissions(
        self,
        owner_user_id: str,
        account_id: str,
        permissions: Dict[str, Optional[bool]]
    ) -> Account:
        """Merge permission flags; keys left as None are unchanged."""
        account = self._require_account(account_id)
        if account.owner_user_id != owner_user_id:
            raise ownership_violation(owner_user_id, account_id, "update permissions of")

        with store_errors(self.db, f"update permissions of {account_id}"):
            account.permissions = self._merge_permissions(account.permissions, permissions)
            self.log_activity(owner_user_id, account, "update_permissions", dict(account.permissions))
            self.db.commit()
        self._publish("update", account)
        return account

    def recompute_stats(self, account_id: str) -> Account:
        """Rebuild the counters from posts and follow edges.

        A full recompute, so concurrent runs converge on the same values.
        """
        account = self._require_account(account_id)

        with store_errors(self.db, f"recompute stats for {account_id}"):
            post_count, likes, comments = self.db.execute(
                select(
                    func.count(Post.id),
                    func.coalesce(func.sum(Post.like_count), 0),
                    func.coalesce(func.sum(Post.comment_count), 0)
                ).where(Post.account_id == account_id)
            ).one()
            follower_count = self.db.scalar(
                select(func.count(AccountFollow.id)).where(AccountFollow.followed_account_id == account_id)
            )
            following_count = self.db.scalar(
                select(func.count(AccountFollow.id)).where(AccountFollow.follower_account_id == account_id)
            )

            account.post_count = post_count or 0
            account.follower_count = follower_count or 0
            account.following_count = following_count or 0
            account.engagement_score = (
                round((likes + comments) / post_count, 2) if post_count else 0.0
            )
            self.log_activity(account.owner_user_id, account, "recompute_stats", {
                "post_count": account.post_count,
                "follower_count": account.follower_count,
                "following_count": account.following_count,
            })
            self.db.commit()
        self._publish("update", account)
        return account

    def get_account_activity(self, user_id: str, limit: int = 50, offset: int = 0) -> List[AccountActivity]:
        with store_errors(self.db, f"load activity for {user_id}"):
            result = self.db.execute(
                select(AccountActivity)
                .where(AccountActivity.user_id == user_id)
                .order_by(AccountActivity.created_at.desc(), AccountActivity.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return list(result.scalars().all())

    def count_account_activity(self, user_id: str) -> int:
        with store_errors(self.db, f"count activity for {user_id}"):
            return self.db.scalar(
                select(func.count(AccountActivity.id)).where(AccountActivity.user_id == user_id)
            ) or 0

    def log_activity(
        self,
        user_id: str,
        account: Optional[Account],
        action_type: str,
        details: Optional[Dict[str, Any]] = None
    ) -> AccountActivity:
        """Stage an activity entry; committed with the caller's transaction."""
        entry = AccountActivity(
            user_id=user_id,
            account_id=account.id if account is not None else None,
            account_type=account.account_type if account is not None else None,
            action_type=action_type,
            action_details=details or {}
        )
        self.db.add(entry)
        return entry

    def _get_by_key(self, owner_user_id: str, account_type: str) -> Optional[Account]:
        result = self.db.execute(
            select(Account).where(
                Account.owner_user_id == owner_user_id,
                Account.account_type == account_type
            )
        )
        return result.scalar_one_or_none()

    def _require_account(self, account_id: str) -> Account:
        account = self.get_account(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        return account

    def _load_owned_profile(
        self,
        owner_user_id: str,
        account_type: str,
        profile_table: str,
        profile_id: str
    ) -> Any:
        model = profile_model_for_table(profile_table)
        if model is None or profile_table != profile_table_for(account_type):
            raise ProfileNotFound(
                f"{profile_table} is not a {account_type} profile table", account_type=account_type
            )
        with store_errors(self.db, f"load profile {profile_table}/{profile_id}"):
            profile = self.db.get(model, profile_id)
        if profile is None:
            raise ProfileNotFound(
                f"Profile {profile_table}/{profile_id} not found", account_type=account_type
            )
        if profile.user_id != owner_user_id:
            raise ownership_violation(owner_user_id, f"{profile_table}/{profile_id}", "attach profile")
        return profile

    def _insert_account(
        self,
        owner_user_id: str,
        account_type: str,
        profile_table: str,
        profile_id: str,
        profile: Any
    ) -> Account:
        display_info = project_profile(account_type, profile)
        account = Account(
            owner_user_id=owner_user_id,
            account_type=account_type,
            profile_table=profile_table,
            profile_id=profile_id,
            display_name=display_info.display_name,
            username=display_info.username,
            avatar_url=display_info.avatar_url,
            is_verified=display_info.is_verified,
            permissions=default_permissions(account_type),
            is_active=True,
            follower_count=0,
            following_count=0,
            post_count=0,
            engagement_score=0.0
        )
        try:
            with store_errors(self.db, f"create {account_type} account for {owner_user_id}"):
                self.db.add(account)
                # Flush the account alone so a constraint violation is attributable to it
                self.db.flush()
                self.log_activity(owner_user_id, account, "create_account", {
                    "profile_table": profile_table,
                    "profile_id": profile_id,
                })
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AccountConflict(
                f"{account_type} account for {owner_user_id} already exists"
            ) from e
        logger.info(f"Created {account_type} account {account.id} for user {owner_user_id}")
        return account

    def _reactivate(self, account: Account, profile_table: str, profile_id: str, profile: Any) -> Account:
        with store_errors(self.db, f"reactivate account {account.id}"):
            account.is_active = True
            account.profile_table = profile_table
            account.profile_id = profile_id
            self._apply_display(account, profile)
            self.log_activity(account.owner_user_id, account, "create_account", {"reactivated": True})
            self.db.commit()
        self._invalidate_display(account.id)
        logger.info(f"Reactivated {account.account_type} account {account.id}")
        self._publish("update", account)
        return account

    @staticmethod
    def _merge_permissions(
        current: Optional[Dict[str, bool]],
        updates: Dict[str, Optional[bool]]
    ) -> Dict[str, bool]:
        merged = dict(current or {})
        for key, value in updates.items():
            if key in PERMISSION_KEYS and value is not None:
                merged[key] = bool(value)
        return merged

    @staticmethod
    def _apply_display(account: Account, profile: Any) -> None:
        display_info = project_profile(account.account_type, profile)
        for field in DISPLAY_FIELDS:
            setattr(account, field, getattr(display_info, field))

    def _invalidate_display(self, account_id: str) -> None:
        if self.cache:
            self.cache.invalidate(account_id)

    def _publish(self, event_type: str, account: Account) -> None:
        if self.event_bus:
            self.event_bus.publish(ACCOUNTS_CHANNEL, event_type, account.to_dict())
