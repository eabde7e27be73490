# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Factory selecting the storage backend for a cache.

The backend is chosen once, from an explicit location tag, when the cache
is built. It is never swapped afterwards.
"""

import logging
from typing import Optional, Union

from ..errors import StorageUnsupportedError
from ..host import HostEnvironment
from .base import CacheLocation, StorageBackend
from .custom import CustomStorage
from .web import WebStorageBackend


logger = logging.getLogger(__name__)


def create_storage_backend(location: Union[str, CacheLocation],
                           host: Optional[HostEnvironment] = None,
                           custom_storage: Optional[CustomStorage] = None) -> StorageBackend:
    """
    Create the storage backend for a cache location.

    Args:
        location: Requested backend kind
        host: Host environment exposing the Web Storage areas
        custom_storage: Host-supplied storage, required for ``CUSTOM``

    Returns:
        StorageBackend instance

    Raises:
        StorageUnsupportedError: If the host cannot provide the backend
    """
    try:
        location = CacheLocation.parse(location)
    except ValueError as e:
        raise StorageUnsupportedError(str(location), reason=str(e)) from e

    if location is CacheLocation.CUSTOM:
        if not isinstance(custom_storage, CustomStorage):
            raise StorageUnsupportedError(
                location.value, reason="no CustomStorage instance was supplied"
            )
        logger.debug(f"Using custom storage {type(custom_storage).__name__}")
        return custom_storage

    if host is None:
        raise StorageUnsupportedError(location.value, reason="no host environment is available")

    area = host.local_storage if location is CacheLocation.LOCAL else host.session_storage
    if area is None:
        raise StorageUnsupportedError(location.value, reason="the host does not expose it")

    logger.debug(f"Using {location.value} backend")
    return WebStorageBackend(area, location)
