"""
Store configuration and YAML loading for wordlist-store.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .exceptions import ConfigError, ValidationError

DEFAULT_POOL_SIZE = 4

# Words written by the optional first-run seed
DEFAULT_SEED_WORDS: Tuple[str, ...] = ("Hello", "World")

_KNOWN_KEYS = {"storage_path", "pool_size", "seed_on_empty", "seed_words"}


@dataclass(frozen=True)
class StoreConfig:
    """Host-supplied settings for a store and its repository."""
    storage_path: str
    pool_size: int = DEFAULT_POOL_SIZE
    seed_on_empty: bool = False
    seed_words: Tuple[str, ...] = DEFAULT_SEED_WORDS

    def __post_init__(self) -> None:
        if not isinstance(self.storage_path, str) or not self.storage_path:
            raise ValidationError("storage_path must be a non-empty string")
        validate_pool_size(self.pool_size)
        if not isinstance(self.seed_on_empty, bool):
            raise ValidationError("seed_on_empty must be true or false")
        if isinstance(self.seed_words, str) or not all(
            isinstance(w, str) and w.strip() for w in self.seed_words
        ):
            raise ValidationError("seed_words must be a list of non-empty strings")
        object.__setattr__(self, "seed_words", tuple(self.seed_words))


def validate_pool_size(pool_size: Any) -> int:
    """Return *pool_size* if it's an integer >= 1."""
    if isinstance(pool_size, bool) or not isinstance(pool_size, int):
        raise ValidationError(f"pool_size must be an integer, got {pool_size!r}")
    if pool_size < 1:
        raise ValidationError(f"pool_size must be at least 1, got {pool_size}")
    return pool_size


def load_config(
    source: Union[str, Path, Dict[str, Any]],
) -> StoreConfig:
    """Load a store configuration from a YAML file, YAML string or dictionary.

    Args:
        source: Path to YAML file, YAML string, or parsed dictionary

    Returns:
        StoreConfig object

    Raises:
        ConfigError: If the source cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        data = _load_yaml_file(path)
    else:
        data = _load_yaml_string(source)

    return _parse_config(data)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    # YAML mappings have "key: value"; paths never contain newlines
    if "\n" in s or ": " in s:
        return False
    if s.endswith((".yaml", ".yml")):
        return True
    return "/" in s or "\\" in s


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load YAML from a file."""
    with open(path, "r", encoding="utf-8") as f:
        return _load_yaml_string(f.read())


def _load_yaml_string(s: str) -> Dict[str, Any]:
    """Load YAML from a string."""
    try:
        data = yaml.safe_load(s)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_num = mark.line + 1 if mark else None
        raise ConfigError(f"Invalid YAML: {e}", line=line_num) from e

    if data is None:
        raise ConfigError("Empty YAML content")
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")

    return data


def _parse_config(data: Dict[str, Any]) -> StoreConfig:
    """Parse a dictionary into a StoreConfig object."""
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    storage_path = data.get("storage_path")
    if not storage_path:
        raise ConfigError("Missing required field: 'storage_path'")
    if not isinstance(storage_path, str):
        raise ConfigError("Field 'storage_path' must be a string")

    kwargs: Dict[str, Any] = {"storage_path": storage_path}
    if "pool_size" in data:
        kwargs["pool_size"] = data["pool_size"]
    if "seed_on_empty" in data:
        kwargs["seed_on_empty"] = data["seed_on_empty"]
    seed_words: Optional[Any] = data.get("seed_words")
    if seed_words is not None:
        if not isinstance(seed_words, list):
            raise ConfigError("Field 'seed_words' must be a list")
        kwargs["seed_words"] = tuple(seed_words)

    try:
        return StoreConfig(**kwargs)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
