"""Character and media limits advertised by the gateway's ``/v1/limits``.

X and Bluesky limits are static and have local defaults. Mastodon limits
depend on the instance and are only known once the gateway has fetched them.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from platforms.base import Platform
from platforms.bluesky import BlueskyCredentials, MEDIA_RULE
from platforms.x import XCredentials


def _int_or_none(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    return value if value > 0 else None


@dataclass(frozen=True)
class XLimits:
    max_characters: int = XCredentials.char_limit
    assumed_user_tier: str = "free"


@dataclass(frozen=True)
class BlueskyLimits:
    max_characters: int = BlueskyCredentials.char_limit
    media_rule: str = MEDIA_RULE


@dataclass(frozen=True)
class MastodonLimits:
    instance_url: str = ""
    max_characters: Optional[int] = None
    max_media_attachments: Optional[int] = None
    characters_reserved_per_url: Optional[int] = None
    supported_mime_types: List[str] = field(default_factory=list)
    image_size_limit: Optional[int] = None
    video_size_limit: Optional[int] = None
    fetched_at: Optional[str] = None


@dataclass(frozen=True)
class Limits:
    x: XLimits = field(default_factory=XLimits)
    bluesky: BlueskyLimits = field(default_factory=BlueskyLimits)
    mastodon: Optional[MastodonLimits] = None

    def char_limit(self, platform):
        """The character limit to enforce, or None when it is not known."""
        platform = Platform(platform)
        if platform is Platform.X:
            return self.x.max_characters
        if platform is Platform.BLUESKY:
            return self.bluesky.max_characters
        if platform is Platform.MASTODON:
            return self.mastodon.max_characters if self.mastodon else None
        raise ValueError(f"Unknown platform: {platform}")

    @property
    def mastodon_max_media(self):
        return self.mastodon.max_media_attachments if self.mastodon else None


DEFAULT_LIMITS = Limits()


def parse_limits(data):
    """Build Limits from a ``/v1/limits`` JSON body.

    Missing or malformed fields fall back to the defaults rather than
    failing, so a partial response still yields usable limits.
    """
    if not isinstance(data, dict):
        return DEFAULT_LIMITS

    x_data = data.get("x") if isinstance(data.get("x"), dict) else {}
    x = XLimits(
        max_characters=_int_or_none(x_data.get("maxCharacters")) or XLimits.max_characters,
        assumed_user_tier=x_data.get("assumedUserTier") or XLimits.assumed_user_tier,
    )

    bsky_data = data.get("bluesky") if isinstance(data.get("bluesky"), dict) else {}
    bluesky = BlueskyLimits(
        max_characters=_int_or_none(bsky_data.get("maxCharacters")) or BlueskyLimits.max_characters,
        media_rule=bsky_data.get("mediaRule") or MEDIA_RULE,
    )

    mastodon = None
    masto_data = data.get("mastodon")
    if isinstance(masto_data, dict):
        mime_types = masto_data.get("supportedMimeTypes")
        mastodon = MastodonLimits(
            instance_url=masto_data.get("instanceUrl") or "",
            max_characters=_int_or_none(masto_data.get("maxCharacters")),
            max_media_attachments=_int_or_none(masto_data.get("maxMediaAttachments")),
            characters_reserved_per_url=_int_or_none(masto_data.get("charactersReservedPerUrl")),
            supported_mime_types=[m for m in mime_types if isinstance(m, str)]
            if isinstance(mime_types, list) else [],
            image_size_limit=_int_or_none(masto_data.get("imageSizeLimit")),
            video_size_limit=_int_or_none(masto_data.get("videoSizeLimit")),
            fetched_at=masto_data.get("fetchedAt"),
        )

    return Limits(x=x, bluesky=bluesky, mastodon=mastodon)
