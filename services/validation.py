"""Pre-submit checks for a compose draft.

``validate`` never raises: it returns every violation it finds, in rule
order, and an empty list is the only signal that the draft may be published.
The first entry is what the compose view shows to the user.
"""

from dataclasses import replace

from platforms import bluesky, mastodon
from platforms.base import Platform
from services.draft import parse_schedule_at
from services.limits import DEFAULT_LIMITS


def count_characters(text):
    """Count code points, so an emoji counts once regardless of its UTF-8 size."""
    return len(text)


def _check_targets(selected_targets):
    if not selected_targets.has_any():
        return ["Select at least one target platform."]
    return []


def _check_text(draft, segments):
    errors = []
    if all(not segment for segment in segments):
        errors.append("Add post text before publishing.")
    if draft.is_thread and any(not segment for segment in segments):
        errors.append("Each thread segment should contain text.")
    return errors


def _check_lengths(draft, segments, limits, selected_targets):
    errors = []
    for index, segment in enumerate(segments):
        label = f"Segment {index + 1}" if draft.is_thread else "Post"
        length = count_characters(segment)
        for platform in Platform:
            if not selected_targets.is_selected(platform):
                continue
            limit = limits.char_limit(platform)
            if limit and length > limit:
                errors.append(f"{label} exceeds {platform.label} limit ({length}/{limit}).")
    return errors


def _check_placement(media, segment_count):
    errors = []
    for index in sorted({m.thread_index for m in media}):
        if not 0 <= index < segment_count:
            errors.append(f"Media is attached to segment {index + 1}, which does not exist.")
    return errors


def _check_media(media, limits, selected_targets):
    errors = []
    if selected_targets.is_selected(Platform.BLUESKY):
        errors.extend(bluesky.check_media(media))

    max_media = limits.mastodon_max_media
    if selected_targets.is_selected(Platform.MASTODON) and max_media:
        errors.extend(mastodon.check_media(media, max_media))
    return errors


def _check_schedule(schedule_at):
    if not schedule_at.strip():
        return ["Set a schedule date/time before scheduling."]
    if parse_schedule_at(schedule_at) is None:
        return ["Schedule date/time is invalid."]
    return []


def validate(draft, limits=None, selected_targets=None, wants_schedule=False):
    """Return the ordered list of reasons ``draft`` cannot be published.

    ``limits`` may be None while the gateway limits are still loading; the
    X and Bluesky defaults apply and Mastodon checks are skipped.
    ``selected_targets`` defaults to the draft's own selection.
    """
    limits = limits or DEFAULT_LIMITS
    if selected_targets is None:
        selected_targets = draft.selected_targets

    media = list(draft.media)
    if not draft.is_thread:
        # A single post has exactly one segment.
        media = [replace(m, thread_index=0) for m in media]
    segments = [text.strip() for text in draft.segment_texts()]

    errors = []
    errors.extend(_check_targets(selected_targets))
    errors.extend(_check_text(draft, segments))
    errors.extend(_check_lengths(draft, segments, limits, selected_targets))
    errors.extend(_check_placement(media, len(segments)))
    # Only media on an existing segment counts toward platform rules.
    placed = [m for m in media if 0 <= m.thread_index < len(segments)]
    errors.extend(_check_media(placed, limits, selected_targets))
    if wants_schedule:
        errors.extend(_check_schedule(draft.schedule_at))
    return errors
