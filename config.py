import json
import logging
import os
from abc import ABC, abstractmethod
from urllib.parse import urlsplit

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.abspath(__file__))

HELPER_HOST = os.getenv("HELPER_HOST", "127.0.0.1")
HELPER_PORT = int(os.getenv("HELPER_PORT", "43123"))

CONFIG_DIR = os.path.expanduser(os.getenv("CROSSPOST_CONFIG_DIR", "~/.crosspost-webapp"))
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.json")
DIST_DIR = os.getenv("DIST_DIR", os.path.join(_BASE_DIR, "dist"))

DEFAULT_GATEWAY_BASE_URL = os.getenv("DEFAULT_GATEWAY_BASE_URL", "http://127.0.0.1:38081")
GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT", "30"))

KEYCHAIN_SERVICE = os.getenv("KEYCHAIN_SERVICE", "crosspost-webapp")
KEYCHAIN_ACCOUNT = os.getenv("KEYCHAIN_ACCOUNT", "gateway-secrets")

MAX_CONTENT_LENGTH = 80 * 1024 * 1024  # 80MB request limit
MAX_UPLOAD_FILES = 12


def normalize_base_url(value):
    """Normalize an http(s) base URL, or return None if it isn't one.

    Drops the query, the fragment and a trailing slash:
    ``https://Example.com/gw/?x=1`` -> ``https://example.com/gw``.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parts = urlsplit(value.strip())
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not parts.hostname:
        return None

    netloc = parts.netloc if "@" in parts.netloc else parts.netloc.lower()
    path = parts.path[:-1] if parts.path.endswith("/") else parts.path
    return f"{scheme}://{netloc}{path}"


class ConfigStore(ABC):
    """Where the helper keeps its non-secret settings."""

    @abstractmethod
    def load(self):
        """Return the config dict, always with a valid ``gatewayBaseUrl``."""

    @abstractmethod
    def save(self, config):
        pass


class JsonConfigStore(ConfigStore):
    def __init__(self, path=CONFIG_PATH):
        self.path = path

    def load(self):
        if not os.path.exists(self.path):
            return {"gatewayBaseUrl": DEFAULT_GATEWAY_BASE_URL}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", self.path, e)
            return {"gatewayBaseUrl": DEFAULT_GATEWAY_BASE_URL}
        url = normalize_base_url(data.get("gatewayBaseUrl")) if isinstance(data, dict) else None
        return {"gatewayBaseUrl": url or DEFAULT_GATEWAY_BASE_URL}

    def save(self, config):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(config, f, indent=2)


class MemoryConfigStore(ConfigStore):
    def __init__(self, config=None):
        self.config = dict(config or {})

    def load(self):
        url = normalize_base_url(self.config.get("gatewayBaseUrl"))
        return {"gatewayBaseUrl": url or DEFAULT_GATEWAY_BASE_URL}

    def save(self, config):
        self.config = dict(config)
