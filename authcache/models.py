# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Access token cache entries.

Access tokens are cached under structured keys: the key is a JSON object
naming the authority, client, scopes and account, and the value is a JSON
object holding the token strings and expiry. Field names follow the
camelCase wire form shared with other clients of the same storage.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .keys import StructuredKey


@dataclass(frozen=True)
class AccessTokenKey:
    """Identifies one cached access token."""

    authority: str
    client_id: str
    scopes: str
    home_account_identifier: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authority": self.authority,
            "clientId": self.client_id,
            "scopes": self.scopes,
            "homeAccountIdentifier": self.home_account_identifier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessTokenKey":
        """
        Create an AccessTokenKey from its decoded JSON form.

        Raises:
            KeyError: If a required field is missing
            TypeError: If data is not a mapping
        """
        return cls(
            authority=data["authority"],
            client_id=data["clientId"],
            scopes=data["scopes"],
            home_account_identifier=data["homeAccountIdentifier"],
        )

    def to_cache_key(self) -> StructuredKey:
        return StructuredKey.from_payload(self.to_dict())


@dataclass(frozen=True)
class AccessTokenValue:
    """Token material cached for an AccessTokenKey."""

    access_token: str
    id_token: str
    expires_in: str
    home_account_identifier: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "idToken": self.id_token,
            "expiresIn": self.expires_in,
            "homeAccountIdentifier": self.home_account_identifier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessTokenValue":
        return cls(
            access_token=data["accessToken"],
            id_token=data["idToken"],
            expires_in=data["expiresIn"],
            home_account_identifier=data["homeAccountIdentifier"],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def is_expired(self, now: Optional[float] = None) -> bool:
        """
        Check whether the token has expired.

        ``expires_in`` holds the expiry as epoch seconds.
        """
        if now is None:
            now = time.time()
        try:
            return now >= float(self.expires_in)
        except (TypeError, ValueError):
            return True


@dataclass(frozen=True)
class AccessTokenCacheItem:
    """A decoded access-token entry."""

    key: AccessTokenKey
    value: AccessTokenValue

    @classmethod
    def from_entry(cls, physical_key: str, raw_value: str) -> "AccessTokenCacheItem":
        """
        Decode a structured physical key and its value.

        Raises:
            ValueError: If either side is not valid JSON
            KeyError: If a required field is missing
            TypeError: If either side does not decode to an object
        """
        return cls(
            key=AccessTokenKey.from_dict(json.loads(physical_key)),
            value=AccessTokenValue.from_dict(json.loads(raw_value)),
        )
