"""Scan configuration loading."""

import os
import re
from dataclasses import dataclass, field

import yaml  # type: ignore[import-untyped]

# Inheritance settings accept a flag, an explicit list of names, or a regex.
InheritanceSetting = bool | list[str] | str


@dataclass
class ScanConfig:
    """Configuration for matching and scanning outline documents."""

    use_tag_inheritance: InheritanceSetting = True
    tags_exclude_from_inheritance: list[str] = field(default_factory=list)
    use_property_inheritance: InheritanceSetting = False
    tags_match_list_sublevels: bool = True
    odd_levels_only: bool = False
    todo_keywords: list[str] = field(default_factory=lambda: ["TODO"])
    done_keywords: list[str] = field(default_factory=lambda: ["DONE"])
    priority_highest: str = "A"
    priority_lowest: str = "C"
    priority_default: str = "B"
    archive_tag: str = "ARCHIVE"
    comment_keyword: str = "COMMENT"
    open_archived_trees: bool = False
    tag_persistent_alist: str = ""

    def tag_is_inherited(self, tag: str) -> bool:
        """Check whether a local tag propagates to descendant headings."""
        setting = self.use_tag_inheritance
        if setting is True:
            return tag not in self.tags_exclude_from_inheritance
        if not setting:
            return False
        if isinstance(setting, str):
            return (
                re.search(setting, tag) is not None
                and tag not in self.tags_exclude_from_inheritance
            )
        return tag in setting

    def property_is_inherited(self, name: str) -> bool:
        """Check whether a property is looked up in ancestors (case-insensitive)."""
        if name.upper() == "CATEGORY":
            return True
        setting = self.use_property_inheritance
        if setting is True:
            return True
        if not setting:
            return False
        if isinstance(setting, str):
            return re.search(setting, name) is not None
        return name.upper() in {item.upper() for item in setting}


_BOOL_KEYS = (
    "tags_match_list_sublevels",
    "odd_levels_only",
    "open_archived_trees",
)
_STR_KEYS = (
    "priority_highest",
    "priority_lowest",
    "priority_default",
    "archive_tag",
    "comment_keyword",
    "tag_persistent_alist",
)
_LIST_KEYS = (
    "tags_exclude_from_inheritance",
    "todo_keywords",
    "done_keywords",
)
_INHERITANCE_KEYS = (
    "use_tag_inheritance",
    "use_property_inheritance",
)


def _get_config_path() -> str:
    """Get the path to the orgscan config file."""
    return os.path.expanduser("~/.config/orgscan/orgscan.yml")


def _check_inheritance_value(key: str, value: object) -> InheritanceSetting:
    """Validate a tag/property inheritance setting.

    Raises:
        ValueError: If the value is not a bool, a list of strings, or a regex.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    if isinstance(value, str):
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid regex for '{key}': {e}") from e
        return value
    raise ValueError(f"'{key}' must be a bool, a list of names, or a regex string")


def _check_priorities(config: ScanConfig) -> None:
    """Validate that the default priority lies between highest and lowest.

    Raises:
        ValueError: If a priority is not a single character or the range is
            inverted.
    """
    letters = (
        config.priority_highest,
        config.priority_default,
        config.priority_lowest,
    )
    if any(len(letter) != 1 for letter in letters):
        raise ValueError("Priorities must be single characters")
    if not config.priority_highest <= config.priority_default <= config.priority_lowest:
        raise ValueError(
            f"'priority_default' {config.priority_default!r} is outside "
            f"{config.priority_highest!r}..{config.priority_lowest!r}"
        )


def parse_scan_config(data: dict) -> ScanConfig:
    """Build a ScanConfig from an already-loaded ``orgscan`` mapping.

    Args:
        data: The ``orgscan`` section of the YAML config.

    Returns:
        The parsed configuration, with defaults for missing keys.

    Raises:
        ValueError: If a key has the wrong type or the priorities are out
            of order.
    """
    config = ScanConfig()

    for key in _BOOL_KEYS:
        if key in data:
            if not isinstance(data[key], bool):
                raise ValueError(f"'{key}' must be a bool")
            setattr(config, key, data[key])

    for key in _STR_KEYS:
        if key in data:
            if not isinstance(data[key], str):
                raise ValueError(f"'{key}' must be a string")
            setattr(config, key, data[key])

    for key in _LIST_KEYS:
        if key in data:
            value = data[key]
            if not isinstance(value, list) or not all(
                isinstance(item, str) for item in value
            ):
                raise ValueError(f"'{key}' must be a list of strings")
            setattr(config, key, list(value))

    for key in _INHERITANCE_KEYS:
        if key in data:
            setattr(config, key, _check_inheritance_value(key, data[key]))

    _check_priorities(config)
    return config


def load_scan_config(path: str | None = None) -> ScanConfig:
    """Load scan config from orgscan.yml, returning defaults if section missing.

    Args:
        path: Optional explicit config path (defaults to
            ~/.config/orgscan/orgscan.yml).

    Returns:
        The loaded configuration.

    Raises:
        ValueError: If the ``orgscan`` section holds malformed values.
    """
    config_path = path or _get_config_path()

    if not os.path.exists(config_path):
        return ScanConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "orgscan" not in data:
        return ScanConfig()

    section = data["orgscan"]
    if not isinstance(section, dict):
        return ScanConfig()

    return parse_scan_config(section)
