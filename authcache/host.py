# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Host environment primitives.

The cache runs inside a browser-like host that exposes two Web Storage
areas and a document-level cookie string. This module models those
resources so the cache can be embedded in any runtime that can provide
them (a webview bridge, Pyodide, or plain in-process state for tests).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)


class WebStorageArea:
    """
    Ordered string-to-string store with the Web Storage API surface.

    Insertion order is preserved, matching the enumeration order a
    browser reports for ``localStorage``/``sessionStorage``.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def key(self, index: int) -> Optional[str]:
        keys = list(self._items)
        if 0 <= index < len(keys):
            return keys[index]
        return None

    def keys(self) -> List[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items


@dataclass
class _Cookie:
    value: str
    path: str = "/"
    expires: Optional[datetime] = None


class DocumentCookies:
    """
    Process-wide cookie string with ``document.cookie`` semantics.

    Assigning ``cookie`` sets or replaces exactly one cookie, identified by
    name. An ``expires`` attribute in the past deletes the cookie. Reading
    ``cookie`` returns every live cookie as ``"name=value; name2=value2"``.
    """

    def __init__(self):
        self._cookies: Dict[str, _Cookie] = {}

    @property
    def cookie(self) -> str:
        self._drop_expired()
        return "; ".join(f"{name}={c.value}" for name, c in self._cookies.items())

    @cookie.setter
    def cookie(self, cookie_str: str) -> None:
        parts = [p.strip() for p in cookie_str.split(";")]
        if not parts or "=" not in parts[0]:
            logger.debug(f"Ignoring malformed cookie assignment: {cookie_str!r}")
            return

        name, _, value = parts[0].partition("=")
        cookie = _Cookie(value=value)

        for attribute in parts[1:]:
            attr_name, _, attr_value = attribute.partition("=")
            attr_name = attr_name.strip().lower()
            if attr_name == "path":
                cookie.path = attr_value
            elif attr_name == "expires":
                try:
                    expires = parsedate_to_datetime(attr_value)
                except (TypeError, ValueError):
                    logger.debug(f"Ignoring unparseable cookie expiry: {attr_value!r}")
                    continue
                if expires.tzinfo is None:
                    expires = expires.replace(tzinfo=timezone.utc)
                cookie.expires = expires

        if cookie.expires is not None and cookie.expires <= datetime.now(timezone.utc):
            self._cookies.pop(name, None)
            return

        # Re-assignment moves the cookie to the end, as browsers do
        self._cookies.pop(name, None)
        self._cookies[name] = cookie

    def _drop_expired(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            name for name, c in self._cookies.items()
            if c.expires is not None and c.expires <= now
        ]
        for name in expired:
            del self._cookies[name]


@dataclass
class HostEnvironment:
    """
    Resources exposed by the embedding host.

    A storage area left as ``None`` models a host where that area is
    disabled or absent.
    """

    local_storage: Optional[WebStorageArea] = field(default_factory=WebStorageArea)
    session_storage: Optional[WebStorageArea] = field(default_factory=WebStorageArea)
    cookies: DocumentCookies = field(default_factory=DocumentCookies)
