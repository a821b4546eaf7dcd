import json
import logging
import os
from urllib.parse import quote

import requests
from flask import Flask, Response, request, jsonify, send_from_directory
from werkzeug.security import safe_join

import config
from services.credentials import apply_secrets_update, profile, resolve_targets, summarize
from services.decode import decode_payload_field, decode_publish_request, decode_secrets_update
from services.errors import DecodeError, HelperError, problem
from services.gateway import GatewayClient, UploadedMedia, relay
from services.payload import build_gateway_payload
from services.vault import KeyringVault

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = config.MAX_CONTENT_LENGTH
app.config["SECRET_VAULT"] = KeyringVault()
app.config["CONFIG_STORE"] = config.JsonConfigStore()
app.config["DIST_DIR"] = config.DIST_DIR


def _vault():
    return app.config["SECRET_VAULT"]


def _config_store():
    return app.config["CONFIG_STORE"]


def _gateway(settings, secrets):
    return GatewayClient(
        settings["gatewayBaseUrl"],
        secrets.gateway_api_key,
        timeout=config.GATEWAY_TIMEOUT,
    )


def _problem(status, title, detail):
    resp = jsonify(problem(status, title, detail))
    resp.status_code = status
    return resp


def _error_response(error, title):
    """ProblemDetails for an error raised while handling a route."""
    if isinstance(error, DecodeError):
        return _problem(error.status, error.title, error.message)
    if isinstance(error, HelperError):
        return _problem(error.status, title, error.message)
    logger.warning("%s: %s", title, error)
    return _problem(500, title, str(error))


def _send_relayed(relayed):
    if relayed.is_json:
        return Response(
            json.dumps(relayed.body),
            status=relayed.status,
            content_type=relayed.content_type or "application/json",
        )
    return Response(
        relayed.body,
        status=relayed.status,
        content_type=relayed.content_type or "text/plain; charset=utf-8",
    )


def _relay_call(title, route, method="GET", params=None):
    try:
        settings = _config_store().load()
        secrets = _vault().load()
        upstream = _gateway(settings, secrets).request(route, method=method, params=params)
        return _send_relayed(relay(upstream))
    except (HelperError, requests.RequestException) as e:
        return _error_response(e, title)


def _dist_dir():
    dist = app.config.get("DIST_DIR")
    return dist if dist and os.path.isdir(dist) else None


@app.after_request
def security_headers(resp):
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "DENY"
    resp.headers["Referrer-Policy"] = "no-referrer"
    return resp


@app.route("/api/health")
def health():
    return jsonify({
        "ok": True,
        "mode": "production" if _dist_dir() else "development",
    })


@app.route("/api/settings")
def get_settings():
    try:
        settings = _config_store().load()
        secrets = _vault().load()
    except HelperError as e:
        return _error_response(e, "Failed to load settings")
    return jsonify({
        "gatewayBaseUrl": settings["gatewayBaseUrl"],
        "configured": summarize(secrets),
        "profile": profile(secrets),
    })


@app.route("/api/settings/gateway", methods=["POST"])
def save_gateway_settings():
    data = request.get_json(silent=True)
    url = config.normalize_base_url(data.get("gatewayBaseUrl")) if isinstance(data, dict) else None
    if not url:
        return _problem(
            400,
            "Invalid gateway URL",
            "Provide a valid http:// or https:// gateway base URL.",
        )

    try:
        _config_store().save({"gatewayBaseUrl": url})
    except OSError as e:
        logger.warning("Could not write config: %s", e)
        return _problem(500, "Failed to save settings", str(e))
    logger.info("Gateway base URL set to %s", url)
    return jsonify({"gatewayBaseUrl": url})


@app.route("/api/settings/secrets", methods=["POST"])
def save_secrets():
    try:
        update = decode_secrets_update(_json_body("Invalid secrets payload"))
        vault = _vault()
        secrets = apply_secrets_update(vault.load(), update)
        vault.save(secrets)
    except HelperError as e:
        return _error_response(e, "Failed to save secrets")

    logger.info("Updated stored secrets: %s", ", ".join(sorted(update.values)) or "none")
    return jsonify({
        "configured": summarize(secrets),
        "profile": profile(secrets),
    })


@app.route("/api/limits")
def limits():
    try:
        secrets = _vault().load()
    except HelperError as e:
        return _error_response(e, "Failed to fetch limits")

    params = {}
    if secrets.mastodon.instance_url:
        params["mastodonInstanceUrl"] = secrets.mastodon.instance_url
    if secrets.mastodon.access_token:
        params["mastodonAccessToken"] = secrets.mastodon.access_token
    return _relay_call("Failed to fetch limits", "/v1/limits", params=params or None)


def _json_body(title):
    """The parsed JSON body; an empty body reads as an empty object."""
    raw = request.get_data(as_text=True)
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise DecodeError(title, "Request body must be valid JSON.") from None


def _read_publish_request():
    """Decode the publish body and collect uploaded files, if any."""
    if request.mimetype == "multipart/form-data":
        publish = decode_payload_field(request.form.get("payload", ""))
        uploads = [
            UploadedMedia(
                filename=f.filename or "upload.bin",
                mime_type=f.mimetype or "application/octet-stream",
                data=f.read(),
            )
            for _, f in request.files.items(multi=True)
        ]
        if len(uploads) > config.MAX_UPLOAD_FILES:
            raise HelperError(413, f"At most {config.MAX_UPLOAD_FILES} media files can be uploaded.")
        return publish, uploads

    return decode_publish_request(_json_body("Invalid payload JSON")), None


@app.route("/api/posts", methods=["POST"])
def create_post():
    try:
        publish, uploads = _read_publish_request()
        settings = _config_store().load()
        secrets = _vault().load()

        resolved = resolve_targets(secrets, publish.selected_targets)
        if resolved.selected_count == 0:
            return _problem(
                400,
                "No targets selected",
                "Select at least one platform target before publishing.",
            )
        if resolved.missing:
            return _problem(
                400,
                "Missing credentials",
                f"Credentials missing for: {', '.join(resolved.missing)}",
            )

        gateway_payload = build_gateway_payload(publish.body, resolved.targets)
        gateway = _gateway(settings, secrets)
        if uploads is not None:
            upstream = gateway.request(
                "/v1/posts", method="POST", payload=gateway_payload, files=uploads,
            )
        else:
            upstream = gateway.request("/v1/posts", method="POST", json_body=gateway_payload)
        return _send_relayed(relay(upstream))
    except (HelperError, requests.RequestException) as e:
        return _error_response(e, "Publish failed")


@app.route("/api/jobs")
def list_jobs():
    return _relay_call("Failed to load jobs", "/v1/jobs")


@app.route("/api/jobs/<job_id>")
def get_job(job_id):
    return _relay_call("Failed to load job details", f"/v1/jobs/{quote(job_id, safe='')}")


@app.route("/api/jobs/<job_id>", methods=["DELETE"])
def cancel_job(job_id):
    return _relay_call(
        "Failed to cancel job", f"/v1/jobs/{quote(job_id, safe='')}", method="DELETE",
    )


@app.errorhandler(404)
def not_found(error):
    if request.path.startswith("/api/"):
        return _problem(404, "Not found", "No matching helper API route found.")

    dist = _dist_dir()
    if dist is None:
        return _problem(
            404,
            "Frontend not built yet",
            'Run "npm run build" then "npm run start" to serve the web app from the helper.',
        )

    # Serve built assets directly; every other path is a client-side route.
    asset = safe_join(dist, request.path.lstrip("/"))
    if asset and os.path.isfile(asset):
        return send_from_directory(dist, request.path.lstrip("/"))
    if not os.path.isfile(os.path.join(dist, "index.html")):
        return _problem(404, "Not found", f"No file at {request.path}.")
    return send_from_directory(dist, "index.html")


@app.errorhandler(405)
def method_not_allowed(error):
    return _problem(405, "Method not allowed", f"{request.method} is not supported on {request.path}.")


@app.errorhandler(500)
def internal_error(error):
    return _problem(500, "Internal server error", "The helper failed to handle this request.")


@app.errorhandler(413)
def payload_too_large(error):
    return _problem(
        413,
        "Payload too large",
        f"Request bodies are limited to {config.MAX_CONTENT_LENGTH // (1024 * 1024)}MB.",
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    app.run(host=config.HELPER_HOST, port=config.HELPER_PORT)
