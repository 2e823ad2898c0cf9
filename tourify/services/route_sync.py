"""Keeps the active account in line with the section being navigated.

This is a navigation convenience, not an access check: type-specific
server-side operations validate ownership on their own.
"""
import logging
from typing import Dict, Optional
from urllib.parse import quote, urlsplit

from tourify.models.account import AccountType
from tourify.schemas.account import RouteSection, RouteSyncAction, RouteSyncResult
from tourify.services.account_store import AccountStore
from tourify.services.session_tracker import ActiveAccountTracker

logger = logging.getLogger(__name__)

SECTION_PREFIXES = (
    ("/artist", RouteSection.ARTIST),
    ("/venue", RouteSection.VENUE),
    ("/admin", RouteSection.ADMIN),
)

SECTION_ACCOUNT_TYPES: Dict[RouteSection, str] = {
    RouteSection.GENERAL: AccountType.PRIMARY.value,
    RouteSection.ARTIST: AccountType.ARTIST.value,
    RouteSection.VENUE: AccountType.VENUE.value,
    RouteSection.ADMIN: AccountType.ADMIN.value,
}


def expected_section(path: str) -> RouteSection:
    """Section implied by a navigation path.

    Matches whole leading segments, so ``/artists`` is not the artist area.
    """
    route = urlsplit(path or "/").path or "/"
    if not route.startswith("/"):
        route = "/" + route
    for prefix, section in SECTION_PREFIXES:
        if route == prefix or route.startswith(prefix + "/"):
            return section
    return RouteSection.GENERAL


def onboarding_url(onboarding_path: str, section: RouteSection, destination: str) -> str:
    return f"{onboarding_path}?type={section.value}&redirect={quote(destination, safe='')}"


class RouteAccountSynchronizer:
    def __init__(
        self,
        store: AccountStore,
        tracker: ActiveAccountTracker,
        onboarding_path: str = "/create"
    ):
        self.store = store
        self.tracker = tracker
        self.onboarding_path = onboarding_path

    def sync(self, user_id: str, path: str) -> RouteSyncResult:
        """
        Reconcile the user's active account with ``path``.

        Returns:
            RouteSyncResult with action none, switched or redirect
        """
        section = expected_section(path)
        expected_type = SECTION_ACCOUNT_TYPES[section]

        active = self.tracker.get_active_account(user_id)
        active_id: Optional[str] = active.id if active is not None else None
        if active is not None and active.account_type == expected_type:
            return RouteSyncResult(action=RouteSyncAction.NONE, expected_type=section, active_account_id=active_id)

        target = self.store.get_account_by_type(user_id, expected_type)
        if target is not None and self.tracker.switch_account(user_id, target.id):
            logger.info(f"Auto-switched user {user_id} to {expected_type} account for {path}")
            return RouteSyncResult(
                action=RouteSyncAction.SWITCHED,
                expected_type=section,
                active_account_id=target.id
            )

        if section is not RouteSection.GENERAL:
            redirect_url = onboarding_url(self.onboarding_path, section, path)
            logger.info(f"User {user_id} has no {expected_type} account, redirecting to {redirect_url}")
            return RouteSyncResult(
                action=RouteSyncAction.REDIRECT,
                expected_type=section,
                active_account_id=active_id,
                redirect_url=redirect_url
            )

        return RouteSyncResult(action=RouteSyncAction.NONE, expected_type=section, active_account_id=active_id)
