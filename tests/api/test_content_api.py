from unittest.mock import patch

from tourify.auth import create_access_token
from tourify.core.exceptions import TransientStoreError

API = "/api/v1/content"


def test_create_post_as_artist(test_client, auth_headers, artist_profile):
    response = test_client.post(
        f"{API}/posts",
        json={"account_type": "artist", "content": "Tour dates announced"},
        headers=auth_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["author_display_name"] == "Midnight Collective"
    assert body["author_username"] == "midnight-collective"
    assert body["account_type"] == "artist"


def test_create_post_defaults_to_primary(test_client, auth_headers, general_profile):
    response = test_client.post(f"{API}/posts", json={"content": "Hello"}, headers=auth_headers)

    assert response.json()["author_display_name"] == "Jordan Rivers"


def test_create_post_without_profile(test_client, auth_headers, general_profile):
    response = test_client.post(
        f"{API}/posts", json={"account_type": "venue", "content": "Doors at eight"}, headers=auth_headers
    )

    assert response.status_code == 404
    listed = test_client.get(f"{API}/accounts/anything/posts", headers=auth_headers)
    assert listed.json() == []


def test_create_post_store_outage(test_client, auth_headers, artist_profile):
    with patch("tourify.services.error_handling.time.sleep"), \
            patch("tourify.services.attribution.AttributionResolver.locate_profile",
                  side_effect=TransientStoreError("down")):
        response = test_client.post(
            f"{API}/posts", json={"account_type": "artist", "content": "Lost"}, headers=auth_headers
        )

    assert response.status_code == 503


def test_create_job_posting(test_client, auth_headers, venue_profile):
    response = test_client.post(
        f"{API}/jobs",
        json={"account_type": "venue", "title": "Bartender", "location": "Chicago"},
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["author_display_name"] == "The Blue Room"


def test_list_and_backfill(test_client, auth_headers, test_db, artist_profile):
    created = test_client.post(
        f"{API}/posts", json={"account_type": "artist", "content": "First"}, headers=auth_headers
    ).json()
    account_id = created["account_id"]
    artist_profile.stage_name = "MC"
    test_db.commit()
    test_client.post(f"/api/v1/accounts/{account_id}/refresh", headers=auth_headers)

    backfill = test_client.post(f"{API}/accounts/{account_id}/backfill", headers=auth_headers)
    posts = test_client.get(f"{API}/accounts/{account_id}/posts", headers=auth_headers).json()

    assert backfill.json() == {"updated": 1}
    assert [p["author_display_name"] for p in posts] == ["MC"]


def test_list_posts_requires_authentication(test_client, auth_headers, artist_profile):
    created = test_client.post(
        f"{API}/posts", json={"account_type": "artist", "content": "Soundcheck"}, headers=auth_headers
    ).json()

    response = test_client.get(f"{API}/accounts/{created['account_id']}/posts")

    assert response.status_code == 401


def test_private_posts_hidden_from_other_users(test_client, auth_headers, artist_profile, other_user_id):
    test_client.post(
        f"{API}/posts", json={"account_type": "artist", "content": "Tour poster"}, headers=auth_headers
    )
    created = test_client.post(
        f"{API}/posts",
        json={"account_type": "artist", "content": "Rider notes", "visibility": "private"},
        headers=auth_headers
    ).json()
    other_headers = {"Authorization": f"Bearer {create_access_token(other_user_id)}"}

    own = test_client.get(f"{API}/accounts/{created['account_id']}/posts", headers=auth_headers).json()
    other = test_client.get(f"{API}/accounts/{created['account_id']}/posts", headers=other_headers).json()

    assert len(own) == 2
    assert [p["content"] for p in other] == ["Tour poster"]
