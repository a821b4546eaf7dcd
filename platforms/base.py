from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum


class Platform(str, Enum):
    X = "x"
    BLUESKY = "bluesky"
    MASTODON = "mastodon"

    @property
    def label(self):
        return _LABELS[self]


_LABELS = {
    Platform.X: "X",
    Platform.BLUESKY: "Bluesky",
    Platform.MASTODON: "Mastodon",
}


@dataclass(frozen=True)
class TargetSelection:
    x: bool = False
    bluesky: bool = False
    mastodon: bool = False

    @classmethod
    def of(cls, *platforms):
        return cls(**{Platform(p).value: True for p in platforms})

    def is_selected(self, platform):
        return bool(getattr(self, Platform(platform).value))

    def selected_platforms(self):
        return [p for p in Platform if self.is_selected(p)]

    def has_any(self):
        return any(getattr(self, f.name) for f in fields(self))

    def to_dict(self):
        return {p.value: self.is_selected(p) for p in Platform}


@dataclass(frozen=True)
class DraftMedia:
    id: str
    mime_type: str
    content: bytes = field(default=b"", repr=False)
    filename: str = ""
    thread_index: int = 0
    alt_text: str = ""

    @property
    def size(self):
        return len(self.content)

    @property
    def is_video(self):
        return self.mime_type.startswith("video/")

    @property
    def is_image(self):
        return self.mime_type.startswith("image/")


class PlatformCredentials(ABC):
    """An all-or-nothing credential tuple for one platform."""

    platform: Platform
    char_limit: int = 500

    @abstractmethod
    def is_complete(self):
        """True when every field needed to authenticate is set."""

    @abstractmethod
    def to_target(self):
        """The authenticated block sent upstream under `targets`."""

    @abstractmethod
    def to_dict(self):
        """The stored (vault) representation."""

    @classmethod
    @abstractmethod
    def from_dict(cls, data):
        """Build from the stored representation, tolerating missing fields."""


def trim_to_none(value):
    """Strip a string value; empty strings and non-strings become None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None
