import pytest

from tourify.schemas.account import RouteSection, RouteSyncAction
from tourify.services.route_sync import expected_section, onboarding_url


@pytest.mark.parametrize("path,section", [
    ("/artist", RouteSection.ARTIST),
    ("/artist/dashboard", RouteSection.ARTIST),
    ("/venue/calendar?month=5", RouteSection.VENUE),
    ("/admin/users", RouteSection.ADMIN),
    ("/artists", RouteSection.GENERAL),
    ("/feed", RouteSection.GENERAL),
    ("/", RouteSection.GENERAL),
    ("", RouteSection.GENERAL),
    ("artist/dashboard", RouteSection.ARTIST),
])
def test_expected_section(path, section):
    assert expected_section(path) == section


def test_onboarding_url_quotes_destination():
    url = onboarding_url("/create", RouteSection.VENUE, "/venue/calendar?month=5")

    assert url == "/create?type=venue&redirect=%2Fvenue%2Fcalendar%3Fmonth%3D5"


class TestRouteAccountSynchronizer:
    def test_switches_to_matching_account(self, store, tracker, synchronizer, test_user_id,
                                          general_profile, artist_profile):
        store.find_or_create_account(test_user_id, "primary", "profiles", general_profile.id)
        artist_id = store.find_or_create_account(test_user_id, "artist", "artist_profiles", artist_profile.id)

        result = synchronizer.sync(test_user_id, "/artist/dashboard")

        assert result.action == RouteSyncAction.SWITCHED
        assert result.expected_type == RouteSection.ARTIST
        assert result.active_account_id == artist_id
        assert tracker.get_active_account(test_user_id).id == artist_id

    def test_no_op_when_already_matching(self, store, tracker, synchronizer, test_user_id, artist_profile):
        artist_id = store.find_or_create_account(test_user_id, "artist", "artist_profiles", artist_profile.id)
        tracker.switch_account(test_user_id, artist_id)

        result = synchronizer.sync(test_user_id, "/artist/settings")

        assert result.action == RouteSyncAction.NONE
        assert result.active_account_id == artist_id

    def test_redirects_without_matching_account(self, store, tracker, synchronizer, test_user_id,
                                                general_profile):
        primary_id = store.find_or_create_account(test_user_id, "primary", "profiles", general_profile.id)

        result = synchronizer.sync(test_user_id, "/venue/calendar")

        assert result.action == RouteSyncAction.REDIRECT
        assert result.redirect_url == "/create?type=venue&redirect=%2Fvenue%2Fcalendar"
        assert result.active_account_id == primary_id
        assert tracker.get_active_account(test_user_id).id == primary_id

    def test_general_route_returns_to_primary(self, store, tracker, synchronizer, test_user_id,
                                              general_profile, artist_profile):
        primary_id = store.find_or_create_account(test_user_id, "primary", "profiles", general_profile.id)
        artist_id = store.find_or_create_account(test_user_id, "artist", "artist_profiles", artist_profile.id)
        tracker.switch_account(test_user_id, artist_id)

        result = synchronizer.sync(test_user_id, "/feed")

        assert result.action == RouteSyncAction.SWITCHED
        assert result.active_account_id == primary_id

    def test_general_route_without_primary_never_redirects(self, store, synchronizer, test_user_id,
                                                           artist_profile):
        artist_id = store.find_or_create_account(test_user_id, "artist", "artist_profiles", artist_profile.id)

        result = synchronizer.sync(test_user_id, "/feed")

        assert result.action == RouteSyncAction.NONE
        assert result.redirect_url is None
        assert result.active_account_id == artist_id

    def test_admin_route(self, store, synchronizer, test_user_id, general_profile, organizer_profile):
        store.find_or_create_account(test_user_id, "primary", "profiles", general_profile.id)
        admin_id = store.find_or_create_account(test_user_id, "admin", "organizer_profiles", organizer_profile.id)

        result = synchronizer.sync(test_user_id, "/admin")

        assert result.action == RouteSyncAction.SWITCHED
        assert result.active_account_id == admin_id

    def test_venue_section_switches_away_from_artist(self, store, tracker, synchronizer, test_user_id,
                                                     artist_profile, venue_profile):
        artist_id = store.find_or_create_account(test_user_id, "artist", "artist_profiles", artist_profile.id)
        venue_id = store.find_or_create_account(test_user_id, "venue", "venue_profiles", venue_profile.id)
        tracker.switch_account(test_user_id, artist_id)

        result = synchronizer.sync(test_user_id, "/venue/bookings")

        assert result.action == RouteSyncAction.SWITCHED
        assert tracker.get_active_account(test_user_id).id == venue_id
