import pytest

from platforms import PLATFORMS, get_credentials_class, get_platform
from platforms.base import Platform, TargetSelection
from platforms.bluesky import BlueskyCredentials
from platforms.mastodon import MastodonCredentials
from platforms.x import XCredentials


def test_platform_ids_and_labels():
    assert [p.value for p in Platform] == ["x", "bluesky", "mastodon"]
    assert [p.label for p in Platform] == ["X", "Bluesky", "Mastodon"]


def test_get_platform():
    assert get_platform("bluesky") is Platform.BLUESKY
    assert get_platform(Platform.X) is Platform.X


def test_get_platform_unknown():
    with pytest.raises(ValueError, match="Unknown platform: threads"):
        get_platform("threads")


def test_every_platform_has_credentials_class():
    assert set(PLATFORMS) == set(Platform)
    assert get_credentials_class("x") is XCredentials


def test_default_char_limits():
    assert XCredentials.char_limit == 280
    assert BlueskyCredentials.char_limit == 300


def test_target_selection():
    selection = TargetSelection.of("x", Platform.MASTODON)
    assert selection.has_any()
    assert selection.selected_platforms() == [Platform.X, Platform.MASTODON]
    assert selection.to_dict() == {"x": True, "bluesky": False, "mastodon": True}
    assert not TargetSelection().has_any()


def test_x_credentials_target_block():
    creds = XCredentials.from_dict({"authToken": " tok "})
    assert creds.is_complete()
    assert creds.to_target() == {"authToken": "tok", "client": "web"}


def test_bluesky_needs_all_three_fields():
    assert not BlueskyCredentials(identifier="me", app_password="pw").is_complete()
    assert BlueskyCredentials(identifier="me", pds_url="https://bsky.social", app_password="pw").is_complete()


def test_mastodon_visibility_not_required():
    creds = MastodonCredentials.from_dict({"instanceUrl": "https://m.example", "accessToken": "t"})
    assert creds.is_complete()
    assert creds.visibility == "public"
