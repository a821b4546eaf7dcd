"""Python client for the helper's ``/api`` surface.

This is the scripted counterpart of the compose view: ``submit`` validates a
draft, builds the publish body and sends it, multipart when the draft has
media attached.
"""

import json
import logging
from urllib.parse import quote

import requests

from services.gateway import is_json_type
from services.limits import parse_limits
from services.payload import build_payload
from services.validation import validate

logger = logging.getLogger(__name__)


class HelperApiError(Exception):
    """A non-2xx answer from the helper, with its ProblemDetails when present."""

    def __init__(self, message, status, problem=None):
        super().__init__(message)
        self.status = status
        self.problem = problem


class DraftValidationError(Exception):
    """Raised by ``submit`` when the draft fails pre-submit validation.

    ``errors`` holds every violation; the message is the first one.
    """

    def __init__(self, errors):
        super().__init__(errors[0])
        self.errors = list(errors)


class HelperClient:
    def __init__(self, base_url="http://127.0.0.1:43123", timeout=60, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method, path, **kwargs):
        resp = self.session.request(
            method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
        )
        parsed = resp.text
        if is_json_type(resp.headers.get("content-type")) and resp.text:
            try:
                parsed = json.loads(resp.text)
            except ValueError:
                logger.warning("Helper sent an unparseable JSON body (status %s)", resp.status_code)

        if not resp.ok:
            problem = parsed if isinstance(parsed, dict) else None
            message = (
                (problem or {}).get("detail")
                or (problem or {}).get("title")
                or f"Request failed with status {resp.status_code}"
            )
            raise HelperApiError(message, resp.status_code, problem)
        return parsed

    def get_health(self):
        return self._request("GET", "/api/health")

    def get_settings(self):
        return self._request("GET", "/api/settings")

    def save_gateway_base_url(self, gateway_base_url):
        return self._request(
            "POST", "/api/settings/gateway", json={"gatewayBaseUrl": gateway_base_url}
        )

    def save_secrets(self, **fields):
        """Save secret fields, named as the API names them (``xAuthToken``...)."""
        return self._request("POST", "/api/settings/secrets", json=fields)

    def fetch_limits(self):
        return parse_limits(self._request("GET", "/api/limits"))

    def list_jobs(self):
        return self._request("GET", "/api/jobs")

    def get_job(self, job_id):
        return self._request("GET", f"/api/jobs/{quote(job_id, safe='')}")

    def cancel_job(self, job_id):
        return self._request("DELETE", f"/api/jobs/{quote(job_id, safe='')}")

    def publish(self, payload, media=()):
        if not media:
            return self._request("POST", "/api/posts", json=payload)

        files = [("payload", (None, json.dumps(payload)))]
        for item in media:
            files.append(("media", (item.filename or item.id, item.content, item.mime_type)))
        return self._request("POST", "/api/posts", files=files)

    def submit(self, draft, limits=None, wants_schedule=False):
        errors = validate(draft, limits, draft.selected_targets, wants_schedule)
        if errors:
            raise DraftValidationError(errors)

        payload = build_payload(draft, wants_schedule)
        logger.info("Publishing %s to %s", payload["clientRequestId"],
                    ", ".join(p.value for p in draft.selected_targets.selected_platforms()))
        return self.publish(payload, draft.media)
