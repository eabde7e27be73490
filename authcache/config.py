# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Configuration for the auth cache.
"""

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .constants import CACHE_PREFIX
from .errors import ConfigurationError
from .storage.base import CacheLocation


ENV_PREFIX = "AUTHCACHE_"


def _to_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return bool(value)


@dataclass(frozen=True)
class CacheConfig:
    """Configuration of one auth cache instance"""
    client_id: str
    cache_location: Union[str, CacheLocation] = CacheLocation.SESSION
    store_auth_state_in_cookie: bool = False
    migration_enabled: bool = True
    cache_prefix: str = CACHE_PREFIX
    cookie_life_days: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.cache_location, str) and not isinstance(self.cache_location, CacheLocation):
            try:
                # Frozen dataclass: normalise through object.__setattr__
                object.__setattr__(self, "cache_location", CacheLocation.parse(self.cache_location))
            except ValueError as e:
                raise ConfigurationError(str(e), field="cache_location") from e

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If a field holds an invalid value
        """
        if not self.client_id:
            raise ConfigurationError("client_id is required", field="client_id")

        if not self.cache_prefix or "." in self.cache_prefix:
            raise ConfigurationError(
                "cache_prefix must be a non-empty string without '.'", field="cache_prefix"
            )

        if self.cookie_life_days is not None and self.cookie_life_days <= 0:
            raise ConfigurationError("cookie_life_days must be positive", field="cookie_life_days")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["cache_location"] = self.cache_location.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        """
        Create a configuration from a mapping, ignoring unknown keys.

        Raises:
            ConfigurationError: If client_id is missing
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        if "client_id" not in values:
            raise ConfigurationError("client_id is required", field="client_id")

        for flag in ("store_auth_state_in_cookie", "migration_enabled"):
            if flag in values:
                values[flag] = _to_bool(values[flag])

        if values.get("cookie_life_days") is not None:
            try:
                values["cookie_life_days"] = float(values["cookie_life_days"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    "cookie_life_days must be a number", field="cookie_life_days"
                ) from e

        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "CacheConfig":
        """Create configuration from environment variables"""
        values = {
            key[len(prefix):].lower(): value
            for key, value in os.environ.items()
            if key.startswith(prefix)
        }
        return cls.from_dict(values)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "CacheConfig":
        """
        Load configuration from a JSON or YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the format is unsupported or the content invalid
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        with open(path, 'r', encoding='utf-8') as f:
            if suffix == '.json':
                data = json.load(f)
            elif suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {suffix}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a mapping")

        return cls.from_dict(data)
