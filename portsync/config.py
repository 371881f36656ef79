"""Sync configuration — loaded from YAML, overridden by command-line flags.

Example ``portsync.yaml``::

    base: v1
    head: v2
    source-root: src/kimi_cli
    mapping-rules:
      - [src/kimi_cli/, rust/kagent/src/]
    extension-rules:
      - [.py, .rs]
    exclude-patterns: [ui, login, auth]
    test-commands:
      unit: cargo test --lib {filter}
      integration: cargo test --test '*' {filter}
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from portsync.errors import ConfigError
from portsync.models import ExtensionRule, MappingRule, TestLevel

DEFAULT_CONFIG_FILE = "portsync.yaml"
DEFAULT_STATE_DIR = ".portsync"
DEFAULT_EXCLUDE_PATTERNS = ("ui", "login", "auth")
DEFAULT_REVIEW_PATTERNS = (r"\blogin\b", r"\bauth\b", r"\bui\b")
DEFAULT_TEST_TIMEOUT = 600

KNOWN_KEYS = {
    "repo",
    "base",
    "head",
    "source-root",
    "target-root",
    "mapping-rules",
    "extension-rules",
    "exclude-patterns",
    "review-patterns",
    "test-commands",
    "test-timeout",
    "checklist",
    "history",
}


@dataclass(frozen=True)
class SyncConfig:
    """Everything a planning run needs."""

    repo: str = "."
    base: str = ""
    head: str = "HEAD"
    source_root: str = ""
    target_root: str = "."
    mapping_rules: tuple[MappingRule, ...] = ()
    extension_rules: tuple[ExtensionRule, ...] = ()
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    review_patterns: tuple[str, ...] = DEFAULT_REVIEW_PATTERNS
    test_commands: dict[TestLevel, str] = field(default_factory=dict)
    test_timeout: int = DEFAULT_TEST_TIMEOUT
    checklist_path: str = f"{DEFAULT_STATE_DIR}/checklist.yaml"
    history_path: str = f"{DEFAULT_STATE_DIR}/history.jsonl"

    def with_overrides(self, **overrides) -> SyncConfig:
        """Return a copy with every non-empty override applied."""
        values = {k: v for k, v in overrides.items() if v not in (None, (), [], "")}
        return replace(self, **values)


def load_config(path: str | Path) -> SyncConfig:
    """Load a sync configuration from a YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return config_from_dict(data)


def config_from_dict(data: dict) -> SyncConfig:
    """Build a SyncConfig from a parsed mapping (hyphenated keys)."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = set(data) - KNOWN_KEYS
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    config = SyncConfig()
    values: dict = {}

    for key, attr in (
        ("repo", "repo"),
        ("base", "base"),
        ("head", "head"),
        ("source-root", "source_root"),
        ("target-root", "target_root"),
        ("checklist", "checklist_path"),
        ("history", "history_path"),
    ):
        if data.get(key) is not None:
            values[attr] = str(data[key])

    if "mapping-rules" in data:
        values["mapping_rules"] = tuple(
            MappingRule(src, dst) for src, dst in _parse_pairs(data["mapping-rules"], "mapping-rules")
        )
    if "extension-rules" in data:
        values["extension_rules"] = tuple(
            ExtensionRule(src, dst)
            for src, dst in _parse_pairs(data["extension-rules"], "extension-rules")
        )
    if "exclude-patterns" in data:
        values["exclude_patterns"] = _parse_strings(data["exclude-patterns"], "exclude-patterns")
    if "review-patterns" in data:
        values["review_patterns"] = _parse_strings(data["review-patterns"], "review-patterns")
    if "test-commands" in data:
        values["test_commands"] = _parse_test_commands(data["test-commands"])
    if "test-timeout" in data:
        try:
            values["test_timeout"] = int(data["test-timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"test-timeout must be an integer: {data['test-timeout']!r}") from e

    return replace(config, **values)


def parse_pair_option(value: str, option: str) -> tuple[str, str]:
    """Parse a ``FROM=TO`` command-line value."""
    src, sep, dst = value.partition("=")
    if not sep or not src:
        raise ConfigError(f"{option} expects FROM=TO, got {value!r}")
    return src, dst


def _parse_pairs(raw, key: str) -> list[tuple[str, str]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{key} must be a list")

    pairs = []
    for i, item in enumerate(raw):
        if isinstance(item, dict):
            if "from" not in item or "to" not in item:
                raise ConfigError(f"{key}[{i}] needs 'from' and 'to'")
            pairs.append((str(item["from"]), str(item["to"] or "")))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            pairs.append((str(item[0]), str(item[1] or "")))
        else:
            raise ConfigError(f"{key}[{i}] must be a [from, to] pair")
        if not pairs[-1][0]:
            raise ConfigError(f"{key}[{i}] has an empty 'from'")
    return pairs


def _parse_strings(raw, key: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(s, str) for s in raw):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(raw)


def _parse_test_commands(raw) -> dict[TestLevel, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("test-commands must be a mapping of level to command")

    commands = {}
    for level_name, command in raw.items():
        try:
            level = TestLevel(level_name)
        except ValueError as e:
            valid = ", ".join(lvl.value for lvl in TestLevel)
            raise ConfigError(f"Unknown test level '{level_name}' (expected one of: {valid})") from e
        if command:
            commands[level] = str(command)
    return commands
