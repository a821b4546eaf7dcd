"""Build publish request bodies.

``build_payload`` runs on the client and turns a ComposeDraft into the body
sent to ``POST /api/posts``. ``build_gateway_payload`` runs in the helper and
turns that body, plus the resolver's authenticated targets, into the body
sent to the gateway's ``/v1/posts``. Client-declared targets never reach the
gateway; only the resolver's blocks do.
"""

import time
from datetime import timezone

from services.draft import parse_schedule_at


def normalize_schedule_at(value):
    """Return ``value`` as an absolute UTC timestamp like ``2026-01-15T17:30:00.000Z``.

    Values without an offset are taken as local time, matching what a
    browser ``datetime-local`` input means.
    """
    dt = parse_schedule_at(value)
    if dt is None:
        raise ValueError("Schedule date/time is invalid.")
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_client_request_id(now=None):
    now = time.time() if now is None else now
    return f"web-{int(now * 1000)}"


def build_payload(draft, wants_schedule=False, now=None):
    payload = {"selectedTargets": draft.selected_targets.to_dict()}

    if draft.is_thread:
        payload["thread"] = [{"text": segment.text} for segment in draft.thread]
    else:
        payload["text"] = draft.text

    if wants_schedule and draft.schedule_at.strip():
        payload["scheduleAt"] = normalize_schedule_at(draft.schedule_at)

    payload["clientRequestId"] = (
        draft.client_request_id.strip() or default_client_request_id(now)
    )

    if draft.media:
        media = []
        for item in draft.media:
            entry = {"threadIndex": item.thread_index if draft.is_thread else 0}
            alt_text = item.alt_text.strip()
            if alt_text:
                entry["altText"] = alt_text
            media.append(entry)
        payload["media"] = media

    return payload


def _segment_text(segment):
    text = segment.get("text") if isinstance(segment, dict) else None
    if text is None:
        return ""
    if isinstance(text, bool):
        return "true" if text else "false"
    return text if isinstance(text, str) else str(text)


def sanitize_thread(thread):
    if not isinstance(thread, list):
        return None
    normalized = [{"text": _segment_text(segment)} for segment in thread]
    return normalized or None


def _thread_index(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        return None
    return value


def sanitize_media(media):
    if not isinstance(media, list):
        return None

    normalized = []
    for item in media:
        if not isinstance(item, dict):
            continue
        thread_index = _thread_index(item.get("threadIndex"))
        if thread_index is None:
            continue
        entry = {"threadIndex": thread_index}
        alt_text = item.get("altText")
        if isinstance(alt_text, str) and alt_text.strip():
            entry["altText"] = alt_text.strip()
        normalized.append(entry)

    return normalized or None


def build_gateway_payload(client_payload, targets):
    """Merge a client publish body with the resolver's authenticated targets.

    Optional fields are copied only when present and well formed; anything
    else in ``client_payload`` (``selectedTargets`` included) is dropped.
    """
    client_payload = client_payload if isinstance(client_payload, dict) else {}
    payload = {"targets": targets}

    text = client_payload.get("text")
    if isinstance(text, str) and text:
        payload["text"] = text

    thread = sanitize_thread(client_payload.get("thread"))
    if thread:
        payload["thread"] = thread

    schedule_at = client_payload.get("scheduleAt")
    if isinstance(schedule_at, str) and schedule_at.strip():
        payload["scheduleAt"] = schedule_at

    client_request_id = client_payload.get("clientRequestId")
    if isinstance(client_request_id, str) and client_request_id.strip():
        payload["clientRequestId"] = client_request_id.strip()

    media = sanitize_media(client_payload.get("media"))
    if media:
        payload["media"] = media

    return payload
