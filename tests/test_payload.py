from dataclasses import replace
from datetime import datetime, timezone

import pytest

from platforms.base import TargetSelection
from services.credentials import StoredSecrets, resolve_targets
from services.payload import (
    build_gateway_payload,
    build_payload,
    normalize_schedule_at,
    sanitize_media,
    sanitize_thread,
)

from conftest import image, single_draft, thread_draft

NOW = 1767225600.0  # 2026-01-01T00:00:00Z


# --- build_payload (client side) ---

def test_single_payload():
    payload = build_payload(single_draft("Hello", targets=("x", "bluesky")), now=NOW)
    assert payload == {
        "selectedTargets": {"x": True, "bluesky": True, "mastodon": False},
        "text": "Hello",
        "clientRequestId": "web-1767225600000",
    }


def test_thread_payload_sets_thread_not_text():
    payload = build_payload(thread_draft(["one", "two"], text="ignored"), now=NOW)
    assert payload["thread"] == [{"text": "one"}, {"text": "two"}]
    assert "text" not in payload


def test_client_request_id_trimmed():
    payload = build_payload(single_draft(client_request_id="  my-id  "))
    assert payload["clientRequestId"] == "my-id"


def test_blank_client_request_id_defaulted():
    payload = build_payload(single_draft(client_request_id="   "), now=NOW)
    assert payload["clientRequestId"] == "web-1767225600000"


def test_schedule_only_when_requested():
    draft = single_draft(schedule_at="2026-03-01T10:00:00Z")
    assert "scheduleAt" not in build_payload(draft)
    assert build_payload(draft, wants_schedule=True)["scheduleAt"] == "2026-03-01T10:00:00.000Z"


def test_schedule_requested_but_empty():
    assert "scheduleAt" not in build_payload(single_draft(), wants_schedule=True)


def test_schedule_normalized_to_utc():
    assert normalize_schedule_at("2026-03-01T12:30:00+02:00") == "2026-03-01T10:30:00.000Z"


def test_schedule_without_offset_is_local_time():
    expected = datetime(2026, 3, 1, 9, 15).astimezone(timezone.utc)
    assert normalize_schedule_at("2026-03-01T09:15") == (
        expected.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    )


def test_invalid_schedule_raises():
    with pytest.raises(ValueError):
        normalize_schedule_at("not a date")


def test_media_metadata():
    media = (image(1, media_id="a"),)
    draft = thread_draft(["one", "two"], media=media)
    assert build_payload(draft)["media"] == [{"threadIndex": 1}]


def test_media_alt_text_trimmed():
    media = (replace(image(0), alt_text="  A cat  "), replace(image(0), alt_text="   "))
    payload = build_payload(single_draft(media=media))
    assert payload["media"] == [{"threadIndex": 0, "altText": "A cat"}, {"threadIndex": 0}]


def test_single_mode_media_forced_to_first_segment():
    payload = build_payload(single_draft(media=(image(2),)))
    assert payload["media"] == [{"threadIndex": 0}]


def test_no_media_key_without_media():
    assert "media" not in build_payload(single_draft())


# --- sanitizers ---

def test_sanitize_thread_coerces_segments():
    thread = [{"text": "a"}, {"text": None}, {}, {"text": 5}, "bare", {"text": True}]
    assert sanitize_thread(thread) == [
        {"text": "a"}, {"text": ""}, {"text": ""}, {"text": "5"}, {"text": ""}, {"text": "true"},
    ]


def test_sanitize_thread_discards_non_list():
    assert sanitize_thread("one, two") is None
    assert sanitize_thread({"text": "a"}) is None
    assert sanitize_thread([]) is None


def test_sanitize_media_drops_bad_indexes():
    media = [
        {"threadIndex": 0},
        {"threadIndex": -1},
        {"threadIndex": 1.5},
        {"threadIndex": "2"},
        {"threadIndex": True},
        {"threadIndex": None},
        {},
        "junk",
        {"threadIndex": 3.0, "altText": "  hi  "},
        {"threadIndex": 4, "altText": "   "},
    ]
    assert sanitize_media(media) == [
        {"threadIndex": 0},
        {"threadIndex": 2},
        {"threadIndex": 3, "altText": "hi"},
        {"threadIndex": 4},
    ]


def test_sanitize_media_all_dropped():
    assert sanitize_media([{"threadIndex": -2}]) is None
    assert sanitize_media("nope") is None


# --- build_gateway_payload (helper side) ---

def test_gateway_payload_strips_empty_fields():
    payload = build_gateway_payload(
        {"text": "", "scheduleAt": "  ", "clientRequestId": " ", "selectedTargets": {"x": True}},
        {"x": {"authToken": "t", "client": "web"}},
    )
    assert payload == {"targets": {"x": {"authToken": "t", "client": "web"}}}


def test_gateway_payload_copies_fields():
    payload = build_gateway_payload(
        {
            "text": "Hello",
            "scheduleAt": "2026-03-01T10:00:00.000Z",
            "clientRequestId": "  req-1 ",
            "extra": "dropped",
        },
        {},
    )
    assert payload == {
        "targets": {},
        "text": "Hello",
        "scheduleAt": "2026-03-01T10:00:00.000Z",
        "clientRequestId": "req-1",
    }


def test_gateway_payload_never_forwards_client_targets():
    payload = build_gateway_payload({"text": "hi", "targets": {"x": {"authToken": "forged"}}}, {})
    assert payload["targets"] == {}


def test_gateway_payload_from_non_object():
    assert build_gateway_payload(None, {}) == {"targets": {}}


def test_round_trip_through_helper():
    media = (image(1),)
    draft = thread_draft(["one", "two", "three"], targets=("x",), media=media)
    client_payload = build_payload(draft, now=NOW)
    assert len(client_payload["thread"]) == 3
    assert client_payload["media"][0]["threadIndex"] == 1

    secrets = StoredSecrets.from_dict({"x": {"authToken": "x-token"}})
    resolved = resolve_targets(secrets, TargetSelection.of("x"))
    gateway_payload = build_gateway_payload(client_payload, resolved.targets)

    assert gateway_payload["thread"] == client_payload["thread"]
    assert gateway_payload["media"] == client_payload["media"]
    assert gateway_payload["targets"] == {"x": {"authToken": "x-token", "client": "web"}}
    assert "selectedTargets" not in gateway_payload
