"""Display projection of account identities.

Maps the type-specific profile behind an account onto the generic
``DisplayInfo`` shape and keeps the cached copy on the account row in step
with it when asked to.
"""
import logging
import re
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from tourify.core.exceptions import AccountNotFound
from tourify.models.account import Account, AccountType
from tourify.models.profile import profile_model_for_table
from tourify.schemas.account import DisplayInfo
from tourify.services.display_cache import DisplayInfoCache
from tourify.services.error_handling import store_errors
from tourify.services.event_bus import ACCOUNTS_CHANNEL, EventBus

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAMES = {
    AccountType.PRIMARY.value: "User",
    AccountType.ARTIST.value: "Artist",
    AccountType.VENUE.value: "Venue",
    AccountType.ADMIN.value: "Organizer",
}

DEFAULT_USERNAMES = {
    AccountType.PRIMARY.value: "user",
    AccountType.ARTIST.value: "artist",
    AccountType.VENUE.value: "venue",
    AccountType.ADMIN.value: "organizer",
}

DISPLAY_FIELDS = ("display_name", "username", "avatar_url", "is_verified")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: Optional[str]) -> str:
    """Lowercase handle with non-alphanumeric runs collapsed to '-'."""
    if not value:
        return ""
    return _NON_ALNUM.sub("-", value.strip().lower()).strip("-")


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def _project_artist(profile: Any) -> Dict[str, Any]:
    stage_name = getattr(profile, "stage_name", None)
    artist_name = getattr(profile, "artist_name", None)
    return {
        "display_name": _first(stage_name, artist_name),
        "username": _first(slugify(stage_name), slugify(artist_name)),
        "avatar_url": getattr(profile, "avatar_url", None),
        "is_verified": getattr(profile, "verification_status", None) == "verified",
    }


def _project_venue(profile: Any) -> Dict[str, Any]:
    venue_name = getattr(profile, "venue_name", None)
    return {
        "display_name": _first(venue_name),
        "username": _first(slugify(venue_name)),
        "avatar_url": getattr(profile, "avatar_url", None),
        "is_verified": getattr(profile, "verification_status", None) == "verified",
    }


def _project_primary(profile: Any) -> Dict[str, Any]:
    return {
        "display_name": _first(getattr(profile, "full_name", None)),
        "username": _first(getattr(profile, "username", None)),
        "avatar_url": getattr(profile, "avatar_url", None),
        "is_verified": bool(getattr(profile, "is_verified", False)),
    }


def _project_admin(profile: Any) -> Dict[str, Any]:
    organization_name = getattr(profile, "organization_name", None)
    return {
        "display_name": _first(organization_name),
        "username": _first(slugify(organization_name)),
        "avatar_url": getattr(profile, "avatar_url", None),
        "is_verified": bool(getattr(profile, "is_verified", False)),
    }


PROJECTIONS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    AccountType.PRIMARY.value: _project_primary,
    AccountType.ARTIST.value: _project_artist,
    AccountType.VENUE.value: _project_venue,
    AccountType.ADMIN.value: _project_admin,
}


def project_profile(account_type: str, profile: Optional[Any]) -> DisplayInfo:
    """Project a profile record (or None) onto DisplayInfo.

    Empty preferred fields fall back to the secondary field and then to the
    per-type default, so name and username are never empty.
    """
    fields: Dict[str, Any] = {}
    if profile is not None:
        fields = PROJECTIONS[account_type](profile)
    return DisplayInfo(
        display_name=fields.get("display_name") or DEFAULT_DISPLAY_NAMES[account_type],
        username=fields.get("username") or DEFAULT_USERNAMES[account_type],
        avatar_url=fields.get("avatar_url") or None,
        is_verified=bool(fields.get("is_verified", False)),
    )


def snapshot_of(account: Account) -> DisplayInfo:
    """The display info currently cached on the account row."""
    return DisplayInfo(
        display_name=account.display_name or DEFAULT_DISPLAY_NAMES[account.account_type],
        username=account.username or DEFAULT_USERNAMES[account.account_type],
        avatar_url=account.avatar_url,
        is_verified=bool(account.is_verified),
    )


class DisplayProjector:
    """Computes and caches account display snapshots."""

    def __init__(
        self,
        db: Session,
        cache: Optional[DisplayInfoCache] = None,
        event_bus: Optional[EventBus] = None
    ):
        self.db = db
        self.cache = cache
        self.event_bus = event_bus

    def load_profile(self, profile_table: str, profile_id: str) -> Optional[Any]:
        model = profile_model_for_table(profile_table)
        if model is None:
            return None
        with store_errors(self.db, f"load profile {profile_table}/{profile_id}"):
            return self.db.get(model, profile_id)

    def project_display_info(self, account: Account) -> DisplayInfo:
        """Project the live profile behind an account.

        A missing profile degrades to the account's cached snapshot.
        """
        profile = self.load_profile(account.profile_table, account.profile_id)
        if profile is None:
            logger.warning(
                f"Profile {account.profile_table}/{account.profile_id} missing for account "
                f"{account.id}, using cached display info"
            )
            return snapshot_of(account)
        return project_profile(account.account_type, profile)

    def refresh_display_info(self, account_id: str) -> DisplayInfo:
        """Re-project and write the display fields back onto the account.

        Only the display fields change; type and counters are untouched.
        """
        with store_errors(self.db, f"load account {account_id}"):
            account = self.db.get(Account, account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")

        display_info = self.project_display_info(account)
        changed = any(
            getattr(account, field) != getattr(display_info, field) for field in DISPLAY_FIELDS
        )

        if changed:
            with store_errors(self.db, f"refresh display info for {account_id}"):
                for field in DISPLAY_FIELDS:
                    setattr(account, field, getattr(display_info, field))
                self.db.commit()
            logger.info(f"Refreshed display info for account {account_id}")
            if self.event_bus:
                self.event_bus.publish(ACCOUNTS_CHANNEL, "update", account.to_dict())

        if self.cache:
            self.cache.set(account_id, display_info)
        return display_info

    def cached_display_info(self, account_id: str) -> Optional[DisplayInfo]:
        if self.cache is None:
            return None
        return self.cache.get(account_id)
