"""Stored platform credentials and target resolution.

The helper never returns secret values through its API: ``summarize`` and
``profile`` expose only booleans and non-secret fields. The only place raw
tokens leave the vault is ``resolve_targets``, whose blocks go upstream.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

import config
from platforms import get_credentials_class
from platforms.base import Platform, TargetSelection, trim_to_none
from platforms.bluesky import BlueskyCredentials, DEFAULT_PDS_URL
from platforms.mastodon import MastodonCredentials, DEFAULT_VISIBILITY
from platforms.x import XCredentials
from services.errors import DecodeError


@dataclass(frozen=True)
class StoredSecrets:
    gateway_api_key: Optional[str] = None
    x: XCredentials = field(default_factory=XCredentials)
    bluesky: BlueskyCredentials = field(default_factory=BlueskyCredentials)
    mastodon: MastodonCredentials = field(default_factory=MastodonCredentials)

    def credentials_for(self, platform):
        platform = Platform(platform)
        if platform is Platform.X:
            return self.x
        if platform is Platform.BLUESKY:
            return self.bluesky
        if platform is Platform.MASTODON:
            return self.mastodon
        raise ValueError(f"Unknown platform: {platform}")

    def has(self, platform):
        return self.credentials_for(platform).is_complete()

    def to_dict(self):
        data = {}
        if self.gateway_api_key:
            data["gatewayApiKey"] = self.gateway_api_key
        for platform in Platform:
            creds = self.credentials_for(platform)
            if creds.is_complete():
                data[platform.value] = creds.to_dict()
        return data

    @classmethod
    def from_dict(cls, data):
        data = data if isinstance(data, dict) else {}
        platforms = {
            p.value: get_credentials_class(p).from_dict(data.get(p.value)) for p in Platform
        }
        return cls(gateway_api_key=trim_to_none(data.get("gatewayApiKey")), **platforms)


@dataclass(frozen=True)
class Resolution:
    targets: Dict[str, dict] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    selected_count: int = 0


def resolve_targets(secrets, requested=None):
    """Work out which requested platforms can actually be published to.

    With no ``requested`` selection, every platform with complete credentials
    is selected. A selected platform without complete credentials is listed
    in ``missing`` and gets no block in ``targets``.
    """
    if requested is None:
        requested = TargetSelection(**{p.value: secrets.has(p) for p in Platform})

    targets = {}
    missing = []
    for platform in requested.selected_platforms():
        creds = secrets.credentials_for(platform)
        if creds.is_complete():
            targets[platform.value] = creds.to_target()
        else:
            missing.append(platform.value)

    return Resolution(
        targets=targets,
        missing=missing,
        selected_count=len(requested.selected_platforms()),
    )


def summarize(secrets):
    summary = {"gatewayApiKey": bool(secrets.gateway_api_key)}
    for platform in Platform:
        summary[platform.value] = secrets.has(platform)
    return summary


def profile(secrets):
    return {
        "blueskyIdentifier": secrets.bluesky.identifier or "",
        "blueskyPdsUrl": secrets.bluesky.pds_url or DEFAULT_PDS_URL,
        "mastodonInstanceUrl": secrets.mastodon.instance_url or "",
        "mastodonVisibility": secrets.mastodon.visibility or DEFAULT_VISIBILITY,
    }


def apply_secrets_update(current, update):
    """Return ``current`` with a decoded SecretsUpdate applied.

    Each platform tuple is saved whole or cleared whole. A request that
    leaves a tuple half filled raises DecodeError and changes nothing.
    """
    secrets = current

    if update.touches("gatewayApiKey"):
        secrets = replace(secrets, gateway_api_key=update.get("gatewayApiKey"))

    if update.touches("xAuthToken"):
        secrets = replace(secrets, x=XCredentials(auth_token=update.get("xAuthToken")))

    if update.touches("blueskyIdentifier", "blueskyPdsUrl", "blueskyAppPassword"):
        identifier = update.get("blueskyIdentifier")
        pds_raw = update.get("blueskyPdsUrl")
        app_password = update.get("blueskyAppPassword")
        pds_url = config.normalize_base_url(pds_raw) if pds_raw else None

        if not identifier and not pds_url and not app_password:
            secrets = replace(secrets, bluesky=BlueskyCredentials())
        elif identifier and pds_url and app_password:
            secrets = replace(
                secrets,
                bluesky=BlueskyCredentials(
                    identifier=identifier, pds_url=pds_url, app_password=app_password,
                ),
            )
        else:
            raise DecodeError(
                "Bluesky credentials incomplete",
                "Set identifier, PDS URL, and app password together, or clear all three.",
            )

    if update.touches("mastodonInstanceUrl", "mastodonAccessToken", "mastodonVisibility"):
        instance_raw = update.get("mastodonInstanceUrl")
        access_token = update.get("mastodonAccessToken")
        visibility = update.get("mastodonVisibility") or DEFAULT_VISIBILITY
        instance_url = config.normalize_base_url(instance_raw) if instance_raw else None

        if not instance_url and not access_token:
            secrets = replace(secrets, mastodon=MastodonCredentials())
        elif instance_url and access_token:
            secrets = replace(
                secrets,
                mastodon=MastodonCredentials(
                    instance_url=instance_url, access_token=access_token, visibility=visibility,
                ),
            )
        else:
            raise DecodeError(
                "Mastodon credentials incomplete",
                "Set instance URL and access token together, or clear both fields.",
            )

    return secrets
