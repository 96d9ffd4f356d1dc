# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Resolve collaborators (transport factory, handlers) from dotted paths."""

from __future__ import annotations

import importlib
from typing import Any

from .exceptions import ConfigException


def load_object(path: str, setting: str | None = None) -> Any:
    """Import ``package.module:attribute`` (or ``package.module.attribute``).

    Args:
        path: Dotted import path.
        setting: Name of the setting the path came from, for error messages.

    Returns:
        The resolved attribute.

    Raises:
        ConfigException: If the module or attribute cannot be resolved.
    """
    label = setting or "import path"
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
    else:
        module_name, _, attr_path = path.rpartition(".")

    if not module_name or not attr_path:
        raise ConfigException(f"Invalid {label} {path!r}: expected 'package.module:attribute'")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigException(f"Cannot import module {module_name!r} for {label}: {e}") from e

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigException(f"Module {module_name!r} has no attribute {attr_path!r} ({label})") from e

    return obj
