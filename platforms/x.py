from dataclasses import dataclass
from typing import Optional

from platforms.base import Platform, PlatformCredentials, trim_to_none


@dataclass(frozen=True)
class XCredentials(PlatformCredentials):
    platform = Platform.X
    char_limit = 280

    auth_token: Optional[str] = None

    def is_complete(self):
        return bool(self.auth_token)

    def to_target(self):
        return {"authToken": self.auth_token, "client": "web"}

    def to_dict(self):
        return {"authToken": self.auth_token}

    @classmethod
    def from_dict(cls, data):
        data = data if isinstance(data, dict) else {}
        return cls(auth_token=trim_to_none(data.get("authToken")))
