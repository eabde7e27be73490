# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Cookie mirror for auth state.

Some hosts drop Web Storage across a cross-site redirect. Mirroring the
request state into cookies lets it survive the navigation. The mirror
always reads the full cookie string and scans it linearly; it assumes no
per-name atomic operations from the host.
"""

import logging
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Optional

from .host import DocumentCookies


logger = logging.getLogger(__name__)


class CookieMirror:
    """Write-through cookie store keyed by name."""

    def __init__(self, cookies: DocumentCookies):
        self._cookies = cookies

    def set(self, name: str, value: str, expires_in_days: Optional[float] = None) -> None:
        """
        Write a cookie.

        Args:
            name: Cookie name
            value: Cookie value
            expires_in_days: Lifetime in days; negative values expire it immediately
        """
        cookie_str = f"{name}={value};path=/;"
        if expires_in_days:
            cookie_str += f"expires={self.get_expiration_time(expires_in_days)};"

        self._cookies.cookie = cookie_str

    def get(self, name: str) -> str:
        """
        Read a cookie.

        Returns:
            The cookie value, or an empty string when the cookie is absent.
            An absent cookie and an empty one cannot be told apart.
        """
        prefix = f"{name}="
        for entry in self._cookies.cookie.split(";"):
            entry = entry.lstrip(" ")
            if entry.startswith(prefix):
                return entry[len(prefix):]
        return ""

    def clear(self, name: str) -> None:
        """Expire a cookie."""
        self.set(name, "", -1)
        logger.debug(f"Cleared cookie {name}")

    @staticmethod
    def get_expiration_time(cookie_life_days: float) -> str:
        """Return the RFC 1123 GMT date ``cookie_life_days`` from now."""
        expires = datetime.now(timezone.utc) + timedelta(days=cookie_life_days)
        return format_datetime(expires, usegmt=True)
