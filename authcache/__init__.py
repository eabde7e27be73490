"""
authcache Python Package

Persistence layer for browser-style authentication clients
"""

__version__ = "0.1.0"
__author__ = "Mauricio Fernandez"
__email__ = "mauricio.fernandez@siemens.com"

from .cache import AuthCache
from .config import CacheConfig
from .cookies import CookieMirror
from .errors import (
    AuthCacheError,
    CacheReconfigurationError,
    ConfigurationError,
    StorageUnsupportedError,
    UnimplementedCapabilityError,
)
from .host import DocumentCookies, HostEnvironment, WebStorageArea
from .keys import KeyGeneration, KeyNamespacer, LogicalKey, StructuredKey, parse_key
from .models import AccessTokenCacheItem, AccessTokenKey, AccessTokenValue
from .registry import get_cache, initialize_cache, teardown_cache
from .storage import CacheLocation, CustomStorage, MemoryStorage

__all__ = [
    "AuthCache",
    "CacheConfig",
    "CookieMirror",
    "AuthCacheError",
    "CacheReconfigurationError",
    "ConfigurationError",
    "StorageUnsupportedError",
    "UnimplementedCapabilityError",
    "DocumentCookies",
    "HostEnvironment",
    "WebStorageArea",
    "KeyGeneration",
    "KeyNamespacer",
    "LogicalKey",
    "StructuredKey",
    "parse_key",
    "AccessTokenCacheItem",
    "AccessTokenKey",
    "AccessTokenValue",
    "get_cache",
    "initialize_cache",
    "teardown_cache",
    "CacheLocation",
    "CustomStorage",
    "MemoryStorage",
]
