# recordgate/core/loader.py
"""
Import paths and YAML route files.
"""
from __future__ import annotations

import importlib
import logging
import os
import re
from glob import glob
from pathlib import Path
from typing import Any, Iterable

import yaml

logger = logging.getLogger(__name__)

# Pattern for environment variable substitution: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def import_attr(path: str) -> Any:
    """
    Dynamically import an attribute from a module.

    Args:
        path: Import path in format 'module.path:attribute'. The attribute
            part may be dotted ('module:Class.method') to reach a member
            of the imported object.

    Returns:
        The imported attribute

    Raises:
        ValueError: If path format is invalid
        ImportError: If module cannot be imported
        AttributeError: If attribute doesn't exist
    """
    if ":" not in path:
        raise ValueError(f"Invalid import path '{path}', expected 'module:attr'")

    mod_name, attr = path.split(":", 1)

    try:
        mod = importlib.import_module(mod_name)
    except ImportError as exc:
        logger.error("Failed to import module '%s'", mod_name)
        raise ImportError(f"Cannot import module '{mod_name}'") from exc

    obj: Any = mod
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            logger.error("Module '%s' has no attribute '%s'", mod_name, attr)
            raise AttributeError(
                f"Module '{mod_name}' has no attribute '{attr}'"
            ) from exc
    return obj


def substitute_env_vars(value: Any) -> Any:
    """Expand `${VAR}` and `${VAR:-default}` in strings, lists and dicts.

    An unset variable without a default is a `ValueError`.
    """
    if isinstance(value, str):
        return _substitute_string(value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    else:
        return value


def _expand(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)
    value = os.environ.get(name, default)
    if value is None:
        raise ValueError(f"Environment variable '{name}' is not set and has no default")
    return value


def _substitute_string(value: str) -> str:
    return ENV_VAR_PATTERN.sub(_expand, value)


def load_yaml_files(patterns: Iterable[str]) -> list[dict[str, Any]]:
    """Parse every route file matched by `patterns`, in sorted path order."""
    patterns = list(patterns)
    paths = sorted({Path(match).resolve() for pattern in patterns for match in glob(pattern)})
    if not paths:
        logger.warning("No route files match %s", patterns)
        return []

    logger.info("Reading route files: %s", [str(p) for p in paths])
    documents: list[dict[str, Any]] = []
    for path in paths:
        try:
            documents.append(yaml.safe_load(path.read_text(encoding="utf-8")) or {})
        except (OSError, yaml.YAMLError):
            logger.error("Cannot read route file '%s'", path)
            raise
    return documents
