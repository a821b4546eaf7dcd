from platforms.base import Platform
from platforms.x import XCredentials
from platforms.bluesky import BlueskyCredentials
from platforms.mastodon import MastodonCredentials

PLATFORMS = {
    Platform.X: XCredentials,
    Platform.BLUESKY: BlueskyCredentials,
    Platform.MASTODON: MastodonCredentials,
}


def get_platform(name):
    try:
        return Platform(name)
    except ValueError:
        raise ValueError(f"Unknown platform: {name}") from None


def get_credentials_class(platform):
    return PLATFORMS[get_platform(platform)]
