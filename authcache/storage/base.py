# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Storage backend interface for the auth cache.

Every operation is a coroutine, even for backends that complete
synchronously, so callers have a single await point regardless of the
medium behind the cache.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional


class CacheLocation(str, Enum):
    """Closed set of backend kinds a cache can be configured with."""

    LOCAL = "localStorage"
    SESSION = "sessionStorage"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> "CacheLocation":
        """
        Resolve a location from the enum, its browser name, or its member name.

        Raises:
            ValueError: If the value names no known location
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            for member in cls:
                if value == member.value or value.upper() == member.name:
                    return member

        raise ValueError(f"Unknown cache location: {value!r}")


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Keys and values are plain strings. ``list_keys`` enumerates the whole
    medium, not only the entries written by the cache; callers filter.
    """

    kind: CacheLocation

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Retrieve the value stored under a key.

        Args:
            key: Physical key

        Returns:
            The stored value, or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry from the medium."""
        pass

    @abstractmethod
    async def list_keys(self) -> List[str]:
        """Return every key currently in the medium, in enumeration order."""
        pass
