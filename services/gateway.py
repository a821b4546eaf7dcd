"""Authenticated calls to the upstream gateway and relay of its responses.

The helper adds the gateway API key as a bearer token and otherwise leaves
requests and responses alone: upstream status codes, content types and
problem-details bodies reach the browser unchanged. Nothing is retried.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from services.errors import HelperError, problem

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPES = ("application/json", "problem+json")


@dataclass(frozen=True)
class UploadedMedia:
    filename: str = "upload.bin"
    mime_type: str = "application/octet-stream"
    data: bytes = field(default=b"", repr=False)


@dataclass(frozen=True)
class RelayedResponse:
    status: int
    content_type: Optional[str]
    body: Any
    is_json: bool = False


def is_json_type(content_type):
    return bool(content_type) and any(t in content_type for t in JSON_CONTENT_TYPES)


class GatewayClient:
    def __init__(self, base_url, api_key, timeout=30, session=None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session

    def url_for(self, route):
        return f"{self.base_url}/{route.lstrip('/')}"

    def request(self, route, method="GET", params=None, json_body=None, payload=None, files=None):
        """Call the gateway and return the raw ``requests.Response``.

        Pass ``json_body`` for a JSON request, or ``payload`` plus ``files``
        (a list of UploadedMedia) for a multipart one. Transport failures
        propagate as ``requests.RequestException``.
        """
        if not self.api_key:
            raise HelperError(400, "Missing gateway API key in secure local storage.")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        kwargs = {"params": params, "headers": headers, "timeout": self.timeout}

        if payload is not None:
            # A None filename makes requests send a plain form field.
            parts = [("payload", (None, json.dumps(payload)))]
            parts.extend(("media", (m.filename, m.data, m.mime_type)) for m in files or [])
            kwargs["files"] = parts
        elif json_body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(json_body)

        url = self.url_for(route)
        logger.info("Gateway %s %s", method, route)
        response = (self.session or requests).request(method, url, **kwargs)
        logger.info("Gateway %s %s -> %s", method, route, response.status_code)
        return response


def relay(response):
    """Turn an upstream response into what the helper sends back.

    JSON and problem+json bodies are parsed so they are re-serialized
    intact; anything else is passed through as raw bytes. An error status
    with an empty body still yields a ProblemDetails body.
    """
    status = response.status_code
    content_type = response.headers.get("content-type")
    content = response.content or b""

    if status >= 400 and not content.strip():
        return RelayedResponse(
            status=status,
            content_type="application/json",
            body=problem(
                status,
                "Gateway request failed",
                f"Gateway responded with status {status} and no body.",
            ),
            is_json=True,
        )

    if is_json_type(content_type):
        try:
            return RelayedResponse(status, content_type, json.loads(content), is_json=True)
        except ValueError:
            logger.warning("Gateway sent %s with an unparseable body", content_type)

    return RelayedResponse(status, content_type, content)
