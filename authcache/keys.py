# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Cache key namespacing.

Two physical-key generations are kept in sync so that older clients
sharing the same storage keep reading their entries:

- current: ``<prefix>.<client_id>.<key>``
- legacy:  ``<prefix>.<key>``

Structured keys (JSON objects, used for access tokens) describe their own
client and account and are stored verbatim in both generations.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .constants import ADAL_ID_TOKEN, CACHE_PREFIX, RESOURCE_DELIMITER, TemporaryCacheKeys


class KeyGeneration(Enum):
    """Physical-key schema generation."""

    CURRENT = "current"
    LEGACY = "legacy"


@dataclass(frozen=True)
class LogicalKey:
    """Application-level key that is namespaced before it is stored."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class StructuredKey:
    """JSON-object key stored verbatim."""

    encoded: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StructuredKey":
        # Compact separators match keys written by JSON.stringify
        return cls(json.dumps(payload, separators=(",", ":")))

    @property
    def payload(self) -> Dict[str, Any]:
        return json.loads(self.encoded)

    def __str__(self) -> str:
        return self.encoded


CacheKey = Union[LogicalKey, StructuredKey]


def parse_key(key: Union[str, Dict[str, Any], LogicalKey, StructuredKey]) -> CacheKey:
    """
    Classify a raw key once, at the call boundary.

    Strings holding a JSON object become ``StructuredKey``; every other
    string is a ``LogicalKey``. A dict is encoded as a structured key.
    """
    if isinstance(key, (LogicalKey, StructuredKey)):
        return key

    if isinstance(key, dict):
        return StructuredKey.from_payload(key)

    key = str(key)
    if key.startswith("{"):
        try:
            decoded = json.loads(key)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, dict):
            return StructuredKey(key)

    return LogicalKey(key)


class KeyNamespacer:
    """Builds physical keys for one client."""

    def __init__(self, client_id: str, prefix: str = CACHE_PREFIX):
        self.client_id = client_id
        self.prefix = prefix

    def is_namespaced(self, key: str) -> bool:
        """Check whether a key already carries this cache's or the legacy library's prefix."""
        return key.startswith(self.prefix) or key.startswith(ADAL_ID_TOKEN)

    def to_physical(self, key, generation: KeyGeneration = KeyGeneration.CURRENT) -> str:
        """
        Translate a key into the physical key of the given generation.

        Args:
            key: Raw or parsed cache key
            generation: Schema generation to build

        Returns:
            Physical key string
        """
        key = parse_key(key)

        if isinstance(key, StructuredKey):
            return key.encoded

        if self.is_namespaced(key.name):
            return key.name

        if generation is KeyGeneration.CURRENT:
            return f"{self.prefix}.{self.client_id}.{key.name}"
        return f"{self.prefix}.{key.name}"

    def contains_prefix(self, physical_key: str) -> bool:
        """Check whether a physical key was written by this cache family."""
        return self.prefix in physical_key


def build_acquire_token_account_key(account_id: Any, state: str) -> str:
    """Create the key caching the account of an acquire-token request."""
    return RESOURCE_DELIMITER.join(
        (TemporaryCacheKeys.ACQUIRE_TOKEN_ACCOUNT.value, f"{account_id}", f"{state}")
    )


def build_authority_key(state: str) -> str:
    """Create the key caching the authority of a request."""
    return f"{TemporaryCacheKeys.AUTHORITY.value}{RESOURCE_DELIMITER}{state}"


def build_renew_status_key(state: str) -> str:
    """Create the key holding the renewal flag of a request."""
    return f"{TemporaryCacheKeys.RENEW_STATUS.value}{RESOURCE_DELIMITER}{state}"


def build_state_cookie_key(cache_key: TemporaryCacheKeys, state: Optional[str]) -> str:
    return f"{cache_key.value}{RESOURCE_DELIMITER}{state or ''}"


def extract_state(physical_key: str) -> Optional[str]:
    """
    Return the request state embedded in a delimiter-separated key.

    The state is always the last segment, both for authority keys and for
    acquire-token account keys.
    """
    segments = physical_key.split(RESOURCE_DELIMITER)
    if len(segments) > 1 and segments[-1]:
        return segments[-1]
    return None
