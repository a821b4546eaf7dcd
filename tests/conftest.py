import pytest

import app as app_module
from config import MemoryConfigStore
from platforms.base import DraftMedia, TargetSelection
from services.draft import ComposeDraft, ThreadSegment
from services.vault import MemoryVault

GATEWAY_URL = "http://gateway.test"


@pytest.fixture
def complete_secrets():
    return {
        "gatewayApiKey": "gw-key",
        "x": {"authToken": "x-token"},
        "bluesky": {
            "identifier": "me.bsky.social",
            "pdsUrl": "https://bsky.social",
            "appPassword": "app-pass",
        },
        "mastodon": {
            "instanceUrl": "https://mastodon.example",
            "accessToken": "masto-token",
            "visibility": "unlisted",
        },
    }


@pytest.fixture
def vault():
    return MemoryVault()


@pytest.fixture
def config_store():
    return MemoryConfigStore({"gatewayBaseUrl": GATEWAY_URL})


@pytest.fixture
def app(tmp_path, vault, config_store):
    """Flask test app with in-memory secrets and config, and no built frontend."""
    flask_app = app_module.app
    saved = {key: flask_app.config[key] for key in ("SECRET_VAULT", "CONFIG_STORE", "DIST_DIR")}

    flask_app.config["TESTING"] = True
    flask_app.config["SECRET_VAULT"] = vault
    flask_app.config["CONFIG_STORE"] = config_store
    flask_app.config["DIST_DIR"] = str(tmp_path / "dist")

    yield flask_app

    flask_app.config.update(saved)
    flask_app.config.pop("TESTING", None)


@pytest.fixture
def client(app):
    return app.test_client()


def image(thread_index=0, media_id=None):
    return DraftMedia(
        id=media_id or f"img-{thread_index}",
        mime_type="image/png",
        content=b"\x89PNG",
        filename="pic.png",
        thread_index=thread_index,
    )


def video(thread_index=0):
    return DraftMedia(
        id=f"vid-{thread_index}",
        mime_type="video/mp4",
        content=b"\x00\x00\x00\x18ftyp",
        filename="clip.mp4",
        thread_index=thread_index,
    )


def single_draft(text="Hello world", targets=("x",), **kwargs):
    return ComposeDraft(
        mode="single",
        text=text,
        selected_targets=TargetSelection.of(*targets),
        **kwargs,
    )


def thread_draft(texts, targets=("x",), **kwargs):
    return ComposeDraft(
        mode="thread",
        thread=tuple(ThreadSegment(text=t) for t in texts),
        selected_targets=TargetSelection.of(*targets),
        **kwargs,
    )
