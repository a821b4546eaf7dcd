from dataclasses import dataclass
from typing import Optional

from platforms.base import Platform, PlatformCredentials, trim_to_none

DEFAULT_PDS_URL = "https://bsky.social"
MAX_IMAGES = 4
MAX_VIDEOS = 1
MEDIA_RULE = "1 video or 1-4 images per segment"


@dataclass(frozen=True)
class BlueskyCredentials(PlatformCredentials):
    platform = Platform.BLUESKY
    char_limit = 300

    identifier: Optional[str] = None
    pds_url: Optional[str] = None
    app_password: Optional[str] = None

    def is_complete(self):
        return bool(self.identifier and self.pds_url and self.app_password)

    def to_target(self):
        return {
            "identifier": self.identifier,
            "pdsUrl": self.pds_url,
            "appPassword": self.app_password,
        }

    def to_dict(self):
        return self.to_target()

    @classmethod
    def from_dict(cls, data):
        data = data if isinstance(data, dict) else {}
        return cls(
            identifier=trim_to_none(data.get("identifier")),
            pds_url=trim_to_none(data.get("pdsUrl")),
            app_password=trim_to_none(data.get("appPassword")),
        )


def group_media_by_segment(media):
    """Group attachments by thread index, keeping first-seen segment order."""
    groups = {}
    for item in media:
        groups.setdefault(item.thread_index, []).append(item)
    return groups


def check_media(media):
    """Apply Bluesky's per-post embed rule to every segment.

    A post embeds either a single video or up to four images, never both.
    """
    errors = []
    for thread_index, items in group_media_by_segment(media).items():
        segment = thread_index + 1
        videos = [m for m in items if m.is_video]
        images = [m for m in items if m.is_image]

        if len(videos) > MAX_VIDEOS:
            errors.append(f"Bluesky segment {segment} allows only one video.")
        if len(videos) == 1 and images:
            errors.append(f"Bluesky segment {segment} cannot mix video and images together.")
        if not videos and len(images) > MAX_IMAGES:
            errors.append(f"Bluesky segment {segment} supports up to {MAX_IMAGES} images.")
    return errors
