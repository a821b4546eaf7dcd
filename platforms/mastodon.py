from dataclasses import dataclass
from typing import Optional

from platforms.base import Platform, PlatformCredentials, trim_to_none

DEFAULT_VISIBILITY = "public"


@dataclass(frozen=True)
class MastodonCredentials(PlatformCredentials):
    platform = Platform.MASTODON
    # Real limit is per instance and comes from the gateway's /v1/limits.
    char_limit = 500

    instance_url: Optional[str] = None
    access_token: Optional[str] = None
    visibility: str = DEFAULT_VISIBILITY

    def is_complete(self):
        return bool(self.instance_url and self.access_token)

    def to_target(self):
        return {
            "instanceUrl": self.instance_url,
            "accessToken": self.access_token,
            "visibility": self.visibility or DEFAULT_VISIBILITY,
        }

    def to_dict(self):
        return self.to_target()

    @classmethod
    def from_dict(cls, data):
        data = data if isinstance(data, dict) else {}
        return cls(
            instance_url=trim_to_none(data.get("instanceUrl")),
            access_token=trim_to_none(data.get("accessToken")),
            visibility=trim_to_none(data.get("visibility")) or DEFAULT_VISIBILITY,
        )


def count_media_by_segment(media):
    counts = {}
    for item in media:
        counts[item.thread_index] = counts.get(item.thread_index, 0) + 1
    return counts


def check_media(media, max_attachments):
    """Per-segment attachment count against the instance's limit."""
    errors = []
    for thread_index, total in count_media_by_segment(media).items():
        if total > max_attachments:
            errors.append(
                f"Mastodon segment {thread_index + 1} exceeds max media "
                f"({total}/{max_attachments})."
            )
    return errors
