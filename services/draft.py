from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

from platforms.base import DraftMedia, TargetSelection

SINGLE = "single"
THREAD = "thread"
MODES = (SINGLE, THREAD)


@dataclass(frozen=True)
class ThreadSegment:
    text: str = ""


@dataclass(frozen=True)
class ComposeDraft:
    """One compose session's post or thread, before it is sent anywhere."""

    mode: str = SINGLE
    text: str = ""
    thread: Tuple[ThreadSegment, ...] = ()
    schedule_at: str = ""
    selected_targets: TargetSelection = field(default_factory=TargetSelection)
    client_request_id: str = ""
    media: Tuple[DraftMedia, ...] = ()

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"Unknown compose mode: {self.mode}")

    @property
    def is_thread(self):
        return self.mode == THREAD

    def segment_texts(self):
        """Texts that will actually be published, in order."""
        if self.is_thread:
            return [segment.text for segment in self.thread]
        return [self.text]


def parse_schedule_at(value):
    """Parse an ISO-8601 schedule string, return a datetime or None.

    Accepts both browser ``datetime-local`` values (``2026-01-15T09:30``) and
    full timestamps with an offset or a ``Z`` suffix.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None
