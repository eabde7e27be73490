# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Well-known cache keys and sentinels shared by the auth cache.
"""

from enum import Enum


CACHE_PREFIX = "msal"

# Keys written by the predecessor library are never re-namespaced
ADAL_ID_TOKEN = "adal.idtoken"

RESOURCE_DELIMITER = "|"

IN_PROGRESS = "In Progress"


class PersistentCacheKeys(str, Enum):
    """Keys that survive across requests."""

    IDTOKEN = "idtoken"
    CLIENT_INFO = "client.info"

    def __str__(self) -> str:
        return self.value


class ErrorCacheKeys(str, Enum):
    """Keys holding the last protocol error."""

    LOGIN_ERROR = "login.error"
    ERROR = "error"
    ERROR_DESC = "error.description"

    def __str__(self) -> str:
        return self.value


class TemporaryCacheKeys(str, Enum):
    """Keys that live only for the duration of one request."""

    AUTHORITY = "authority"
    ACQUIRE_TOKEN_ACCOUNT = "acquireToken.account"
    SESSION_STATE = "session.state"
    STATE_LOGIN = "state.login"
    STATE_ACQ_TOKEN = "state.acquireToken"
    STATE_RENEW = "state.renew"
    NONCE_IDTOKEN = "nonce.idtoken"
    LOGIN_REQUEST = "login.request"
    RENEW_STATUS = "token.renew.status"
    URL_HASH = "urlHash"
    INTERACTION_STATUS = "interaction_status"
    REDIRECT_REQUEST = "redirect_request"

    def __str__(self) -> str:
        return self.value


# Legacy-schema entries copied forward when a cache is opened
MIGRATED_KEYS = (
    PersistentCacheKeys.IDTOKEN,
    PersistentCacheKeys.CLIENT_INFO,
    ErrorCacheKeys.ERROR,
    ErrorCacheKeys.ERROR_DESC,
)
