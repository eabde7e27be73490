# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package storage provides the backends an auth cache can persist to.

This package implements:
- The async backend interface and the closed set of cache locations
- Local and session Web Storage backends
- Host-supplied custom storage, with memory, Redis and file implementations
- The factory selecting a backend at construction time
"""

from .base import (
    CacheLocation,
    StorageBackend
)

from .web import (
    WebStorageBackend
)

from .custom import (
    CustomStorage,
    MemoryStorage
)

from .distributed import (
    RedisConfig,
    RedisStorage
)

from .filesystem import (
    FileStorage
)

from .factory import (
    create_storage_backend
)

__all__ = [
    # Interface
    'CacheLocation',
    'StorageBackend',

    # Implementations
    'WebStorageBackend',
    'CustomStorage',
    'MemoryStorage',
    'RedisConfig',
    'RedisStorage',
    'FileStorage',

    # Factory
    'create_storage_backend'
]
