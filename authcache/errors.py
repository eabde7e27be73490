# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Structured error handling for the auth cache.

Errors carry a machine-readable code, the component they originate from,
and optional details so callers in the protocol layer can report them
without parsing messages.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorCode(str, Enum):
    """Error codes raised by the cache layer."""

    CONFIGURATION_ERROR = "configuration_error"
    STORAGE_NOT_SUPPORTED = "storage_not_supported"
    CAPABILITY_NOT_IMPLEMENTED = "capability_not_implemented"
    CACHE_RECONFIGURED = "cache_reconfigured"
    STORAGE_ERROR = "storage_error"

    def __str__(self) -> str:
        return self.value


class ErrorSource(str, Enum):
    """Components where errors can originate."""

    CONFIGURATION = "configuration"
    STORAGE = "storage"
    CUSTOM_STORAGE = "custom_storage"
    REGISTRY = "registry"

    def __str__(self) -> str:
        return self.value


class AuthCacheError(Exception):
    """
    Base exception class for all auth cache errors.

    Provides structured error information with an error code, the
    originating component, and additional details.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        source: ErrorSource = ErrorSource.STORAGE,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.code = code
        self.message = message
        self.source = source
        self.details = details or {}
        self.cause = cause

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "error": self.code.value,
            "error_description": self.message,
            "error_source": self.source.value,
        }

        if self.details:
            result["details"] = self.details

        if self.cause:
            result["caused_by"] = str(self.cause)

        return result

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ConfigurationError(AuthCacheError):
    """Raised when the cache is configured with invalid values."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field

        super().__init__(
            code=kwargs.pop("code", ErrorCode.CONFIGURATION_ERROR),
            message=message,
            source=ErrorSource.CONFIGURATION,
            details=details,
            **kwargs
        )


class StorageUnsupportedError(ConfigurationError):
    """Raised at construction when the requested backend is unavailable."""

    def __init__(self, storage_kind: str, reason: Optional[str] = None):
        message = f"Storage type '{storage_kind}' is not supported by the host environment"
        if reason:
            message = f"{message}: {reason}"

        super().__init__(
            message,
            field="cache_location",
            code=ErrorCode.STORAGE_NOT_SUPPORTED,
            details={"storage_kind": storage_kind},
        )
        self.storage_kind = storage_kind


class UnimplementedCapabilityError(AuthCacheError):
    """Raised when a custom storage does not implement a required operation."""

    def __init__(self, method_name: str):
        super().__init__(
            code=ErrorCode.CAPABILITY_NOT_IMPLEMENTED,
            message=f'Method not implemented: "{method_name}" on the custom storage',
            source=ErrorSource.CUSTOM_STORAGE,
            details={"method": method_name},
        )
        self.method_name = method_name


class CacheReconfigurationError(AuthCacheError):
    """Raised when the shared cache is initialized again with a different configuration."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            code=ErrorCode.CACHE_RECONFIGURED,
            message=message,
            source=ErrorSource.REGISTRY,
            **kwargs
        )


class StorageError(AuthCacheError):
    """Errors raised by a storage backend while serving a request."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            code=ErrorCode.STORAGE_ERROR,
            message=message,
            source=ErrorSource.STORAGE,
            **kwargs
        )
