# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered YAML configuration with env var overrides and typed binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__goldsmith_config_prefix__"

_ENV_PREFIX = "GOLDSMITH_"

DEFAULTS_RESOURCE = "goldsmith-defaults.yaml"


def _env_key(key: str) -> str:
    """``goldsmith.pricing.metal.api_key`` -> ``GOLDSMITH_PRICING_METAL_API_KEY``."""
    return _ENV_PREFIX + key.removeprefix("goldsmith.").upper().replace(".", "_").replace("-", "_")


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a class as bindable to a configuration prefix.

    Pydantic models are validated with ``model_validate`` (durations given
    as seconds or ISO-8601 strings coerce to ``timedelta``); dataclasses get
    simple scalar coercion.

    Usage:
        @config_properties(prefix="goldsmith.pricing.metal")
        class MetalPriceProperties(BaseModel):
            base_url: str = "https://api.metals.live/v1/spot"
            rate_limit: timedelta = timedelta(seconds=1)
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access.

    Priority (highest wins):
    1. Environment variables (``GOLDSMITH_SECTION_KEY``), for ``get()`` and ``bind()``
    2. Profile overlays (``goldsmith-{profile}.yaml``)
    3. ``goldsmith.yaml``
    4. Package defaults (``goldsmith-defaults.yaml``)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config sources that were merged, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the raw configuration data."""
        return dict(self._data)

    @classmethod
    def defaults(cls) -> Config:
        """Configuration holding only the package defaults."""
        instance = cls(cls._load_defaults())
        instance._loaded_sources = [f"{DEFAULTS_RESOURCE} (package defaults)"]
        return instance

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load and merge ``goldsmith.yaml`` plus profile overlays from *base_dir*."""
        base_dir = Path(base_dir)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append(f"{DEFAULTS_RESOURCE} (package defaults)")

        candidate = base_dir / "goldsmith.yaml"
        if candidate.is_file():
            data = cls._deep_merge(data, cls._load_yaml(candidate))
            sources.append(str(candidate))

        for profile in active_profiles or []:
            candidate = base_dir / f"goldsmith-{profile}.yaml"
            if candidate.is_file():
                data = cls._deep_merge(data, cls._load_yaml(candidate))
                sources.append(f"{candidate} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        """Load a single YAML file on top of the package defaults."""
        path = Path(path)
        data: dict[str, Any] = cls._load_defaults() if load_defaults else {}
        sources = [f"{DEFAULTS_RESOURCE} (package defaults)"] if load_defaults else []

        if path.is_file():
            data = cls._deep_merge(data, cls._load_yaml(path))
            sources.append(str(path))

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        """Load built-in defaults shipped in ``goldsmith.resources``."""
        defaults_file = importlib.resources.files("goldsmith.resources").joinpath(DEFAULTS_RESOURCE)
        return yaml.safe_load(defaults_file.read_text(encoding="utf-8")) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, with override values winning."""
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        ``goldsmith.pricing.metal.api_key`` is overridden by
        ``GOLDSMITH_PRICING_METAL_API_KEY``. String values containing
        ``${NAME}``, ``${config.key}`` or ``${key:default}`` placeholders
        are resolved.
        """
        env_val = os.environ.get(_env_key(key))
        if env_val is not None:
            return env_val

        current = self._lookup(key)
        if current is None:
            return default

        if isinstance(current, str) and "${" in current:
            return self._resolve_placeholders(current)

        return current

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        """Resolve ``${...}`` placeholders from the environment or other keys."""
        if _depth > 10:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def _replace(match: re.Match[str]) -> str:
            inner = match.group(1)
            ref_key, sep, default_val = inner.partition(":")

            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val

            current = self._lookup(ref_key)
            if current is not None:
                resolved = str(current)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved

            if sep:
                return cast(str, default_val)

            raise ValueError(f"Cannot resolve placeholder '${{{inner}}}': not found in environment or config")

        return _PLACEHOLDER_RE.sub(_replace, value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get the nested dict stored under *prefix* (empty if absent)."""
        current = self._lookup(prefix)
        return current if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind the section for a ``@config_properties`` class to an instance.

        Environment variables win over file values field by field, as in
        :meth:`get`.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = {
            key: self._resolve_placeholders(value) if isinstance(value, str) and "${" in value else value
            for key, value in self.get_section(prefix).items()
        }
        section.update(self._env_overrides(prefix, self._field_names(config_cls)))

        if issubclass(config_cls, BaseModel):
            try:
                return cast(T, config_cls.model_validate(section))
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            if field.name not in section:
                continue
            value = section[field.name]
            expected_type = hints.get(field.name)
            if expected_type is int and isinstance(value, str):
                value = int(value)
            elif expected_type is float and isinstance(value, str):
                value = float(value)
            elif expected_type is bool and isinstance(value, str):
                value = value.lower() in ("true", "1", "yes")
            kwargs[field.name] = value

        return config_cls(**kwargs)

    @staticmethod
    def _field_names(config_cls: type) -> list[str]:
        if issubclass(config_cls, BaseModel):
            return list(config_cls.model_fields)
        if dataclasses.is_dataclass(config_cls):
            return [field.name for field in dataclasses.fields(config_cls)]
        return []

    @staticmethod
    def _env_overrides(prefix: str, fields: list[str]) -> dict[str, str]:
        overrides: dict[str, str] = {}
        for name in fields:
            value = os.environ.get(_env_key(f"{prefix}.{name}"))
            if value is not None:
                overrides[name] = value
        return overrides
