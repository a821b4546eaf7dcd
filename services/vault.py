"""Credential vault: where StoredSecrets live between requests.

The real vault is the OS keychain (via ``keyring``), holding one JSON blob
under a fixed service/account pair. Reads and writes are not locked; with a
single local user the last write wins.
"""

import json
import logging
from abc import ABC, abstractmethod

import keyring
from keyring.errors import KeyringError

import config
from services.credentials import StoredSecrets
from services.errors import HelperError

logger = logging.getLogger(__name__)


class SecretVault(ABC):
    @abstractmethod
    def load(self):
        """Return the current StoredSecrets (empty when nothing is stored)."""

    @abstractmethod
    def save(self, secrets):
        pass


class KeyringVault(SecretVault):
    def __init__(self, service=config.KEYCHAIN_SERVICE, account=config.KEYCHAIN_ACCOUNT):
        self.service = service
        self.account = account

    def load(self):
        try:
            raw = keyring.get_password(self.service, self.account)
        except KeyringError as e:
            raise HelperError(500, f"Unable to read secure local storage: {e}") from e
        if not raw:
            return StoredSecrets()
        try:
            return StoredSecrets.from_dict(json.loads(raw))
        except ValueError:
            logger.warning("Stored secrets are not valid JSON; treating them as empty")
            return StoredSecrets()

    def save(self, secrets):
        try:
            keyring.set_password(self.service, self.account, json.dumps(secrets.to_dict()))
        except KeyringError as e:
            raise HelperError(500, f"Unable to write secure local storage: {e}") from e


class MemoryVault(SecretVault):
    """Vault kept in process memory, for tests and keychain-less hosts."""

    def __init__(self, secrets=None):
        if isinstance(secrets, dict):
            secrets = StoredSecrets.from_dict(secrets)
        self.secrets = secrets or StoredSecrets()

    def load(self):
        return self.secrets

    def save(self, secrets):
        self.secrets = secrets
