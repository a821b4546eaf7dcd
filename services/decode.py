"""Decode helper request bodies into typed values.

All "is this field present and well typed" checks for incoming JSON happen
here. Handlers get either a decoded value or a DecodeError (HTTP 400).
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from platforms.base import Platform, TargetSelection
from services.errors import DecodeError

SECRET_FIELDS = (
    "gatewayApiKey",
    "xAuthToken",
    "blueskyIdentifier",
    "blueskyPdsUrl",
    "blueskyAppPassword",
    "mastodonInstanceUrl",
    "mastodonAccessToken",
    "mastodonVisibility",
)


@dataclass(frozen=True)
class PublishRequest:
    """A publish body from the compose client.

    ``selected_targets`` is None when the caller did not send a selection.
    ``body`` keeps the raw object for the payload builder to sanitize.
    """

    selected_targets: Optional[TargetSelection]
    body: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SecretsUpdate:
    """The secret fields present in a settings update.

    Keys absent from ``values`` were not sent and must be left alone; a value
    of None means the field was sent empty and asks for a clear.
    """

    values: Dict[str, Optional[str]] = field(default_factory=dict)

    def touches(self, *names):
        return any(name in self.values for name in names)

    def get(self, name):
        return self.values.get(name)


def decode_selected_targets(value):
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DecodeError("Invalid payload", "selectedTargets must be an object of platform flags.")

    selected = {}
    for key, flag in value.items():
        try:
            platform = Platform(key)
        except ValueError:
            raise DecodeError("Invalid payload", f"Unknown target platform: {key}") from None
        if not isinstance(flag, bool):
            raise DecodeError("Invalid payload", f"selectedTargets.{key} must be true or false.")
        selected[platform.value] = flag
    return TargetSelection(**selected)


def decode_publish_request(body):
    if not isinstance(body, dict):
        raise DecodeError("Invalid payload", "Request body must be a JSON object.")
    return PublishRequest(
        selected_targets=decode_selected_targets(body.get("selectedTargets")),
        body=body,
    )


def decode_payload_field(raw):
    """Decode the ``payload`` field of a multipart publish request."""
    if not raw:
        raise DecodeError("Missing payload", "payload field is required.")
    try:
        body = json.loads(raw)
    except ValueError:
        raise DecodeError("Invalid payload JSON", "payload must be valid JSON.") from None
    return decode_publish_request(body)


def decode_secrets_update(body):
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise DecodeError("Invalid secrets payload", "Request body must be a JSON object.")

    values = {}
    for name in SECRET_FIELDS:
        if name not in body:
            continue
        value = body[name]
        if value is not None and not isinstance(value, str):
            raise DecodeError("Invalid secrets payload", f"{name} must be a string.")
        value = value.strip() if value else ""
        values[name] = value or None
    return SecretsUpdate(values=values)
