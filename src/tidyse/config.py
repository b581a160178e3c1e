"""
Configuration for tidyse.

Only one behaviour is configurable: what tidy() does when user metadata
already holds a column named like a reserved key (`sample` in the sample
metadata, `transcript` in the feature metadata).

Supports YAML and JSON config files. A file may hold the settings at the
top level or under a `tidyse:` section:

    tidyse:
      collision_policy: reject
      rename_suffix: "_"
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Literal, Mapping

import yaml

__all__ = [
    'TidyConfig',
    'COLLISION_POLICIES',
    'load_config',
    'load_tidy_config',
]

COLLISION_POLICIES = ("warn", "rename", "reject")


@dataclass(frozen=True)
class TidyConfig:
    """
    Reserved-name collision settings.

    Attributes:
        collision_policy: "warn" renames the user column and emits a warning
            (default), "rename" renames silently, "reject" raises
            NameCollisionError
        rename_suffix: Appended to the user column when renaming
            (`sample` -> `sample_`)
    """
    collision_policy: Literal["warn", "rename", "reject"] = "warn"
    rename_suffix: str = "_"

    def __post_init__(self):
        if self.collision_policy not in COLLISION_POLICIES:
            raise ValueError(
                f"Unknown collision_policy: {self.collision_policy!r}. "
                f"Use one of {', '.join(COLLISION_POLICIES)}"
            )
        if not isinstance(self.rename_suffix, str) or not self.rename_suffix:
            raise ValueError("rename_suffix must be a non-empty string")

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "TidyConfig":
        """
        Build a TidyConfig from a mapping, rejecting unknown keys.

        Raises:
            ValueError: If the mapping holds keys TidyConfig does not know
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**dict(config))


# suffix -> (parser, parse error, format label)
_PARSERS = {
    '.yaml': (yaml.safe_load, yaml.YAMLError, "YAML"),
    '.yml': (yaml.safe_load, yaml.YAMLError, "YAML"),
    '.json': (json.load, json.JSONDecodeError, "JSON"),
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Read the tidyse settings from a YAML or JSON file.

    The file suffix picks the parser. Settings are taken from a top-level
    `tidyse:` section when the file has one, else from the whole document.
    An empty file or empty section gives an empty dict.

    Raises:
        FileNotFoundError: If the file is missing
        ValueError: On an unknown suffix, a parse error, or a document that
            is not a mapping

    Examples:
        >>> load_config(Path("tidyse.yaml"))
        {'collision_policy': 'reject'}
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in _PARSERS:
        raise ValueError(
            f"Unsupported config format: {suffix}. Use {', '.join(_PARSERS)}"
        )
    parse, parse_error, label = _PARSERS[suffix]

    with open(config_path, 'r') as f:
        try:
            document = parse(f)
        except parse_error as e:
            raise ValueError(f"Invalid {label} in config file: {e}") from e

    return _tidyse_section(document)


def _tidyse_section(document: Any) -> Dict[str, Any]:
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")
    section = document.get('tidyse', document)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError("The 'tidyse' section must be a dictionary/mapping")
    return section


def load_tidy_config(config_path: Path) -> TidyConfig:
    """Load a config file straight into a TidyConfig."""
    return TidyConfig.from_dict(load_config(config_path))
