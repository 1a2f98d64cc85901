"""
FILE DESCRIPTION: Crawl options and YAML configuration files.
KEY FUNCTIONS/CLASSES: CrawlOptions, load_config, merge_options, options_for_target

Merge order (later wins): defaults < config globals < config target < CLI.
List options (include/exclude) accumulate across config layers; a CLI value
replaces them outright.
"""

import os
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List

import yaml

from webharvest.core import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_QUEUE_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OUTPUT_DIR,
    LOG_LEVELS,
)
from webharvest.errors import ConfigError

CONFIG_ENV_VAR = "WEBHARVEST_CONFIG"

ARRAY_FIELDS = ("include", "exclude")

# Config-file spellings that do not follow the camelCase -> snake_case rule
KEY_ALIASES = {
    "limit": "max_pages",
}


@dataclass
class CrawlOptions:
    max_pages: int = DEFAULT_MAX_PAGES
    delay: int = DEFAULT_DELAY_MS
    concurrency: int = DEFAULT_CONCURRENCY
    output_dir: str = DEFAULT_OUTPUT_DIR
    raw: bool = False
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    ignore_robots: bool = False
    ignore_errors: bool = False
    llms: bool = False
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    log_level: str = "normal"

    @classmethod
    def from_dict(cls, data: dict) -> "CrawlOptions":
        """Build options from a merged dict; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        options = cls(**{k: v for k, v in data.items() if k in known and v is not None})
        options.validate()
        return options

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self):
        for name in ("max_pages", "concurrency", "max_queue_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ConfigError(f"max_retries must be a non-negative integer, got {self.max_retries!r}")
        if isinstance(self.delay, bool) or not isinstance(self.delay, (int, float)) or self.delay < 0:
            raise ConfigError(f"delay must be a non-negative number, got {self.delay!r}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if not self.output_dir:
            raise ConfigError("output_dir must not be empty")
        return self


def snake_case(key: str) -> str:
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key).lower().replace("-", "_")
    return KEY_ALIASES.get(key, key)


def normalize_keys(section: dict) -> dict:
    return {snake_case(str(k)): v for k, v in (section or {}).items()}


def normalize_array_fields(section: dict) -> dict:
    """Coerce include/exclude to lists of non-empty strings."""
    for name in ARRAY_FIELDS:
        if name not in section or section[name] is None:
            continue
        value = section[name]
        if not isinstance(value, (list, tuple)):
            value = [value]
        section[name] = [str(v) for v in value if v is not None and str(v)]
    return section


def load_config(path=None):
    """
    FLOW: Resolve path (argument or WEBHARVEST_CONFIG) -> Parse YAML with yaml.safe_load ->
    Normalize keys and list fields of globals and each target -> Return dict or None.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    if not path:
        return None

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        return None

    globals_ = data.get("globals") or {}
    targets = data.get("targets") or []
    if not isinstance(globals_, dict):
        raise ConfigError("'globals' must be a mapping")
    if not isinstance(targets, list):
        raise ConfigError("'targets' must be a list")

    normalized_targets = []
    for i, target in enumerate(targets):
        if isinstance(target, str):
            target = {"url": target}
        if not isinstance(target, dict) or not target.get("url"):
            raise ConfigError(f"target #{i + 1} has no url")
        normalized_targets.append(normalize_array_fields(normalize_keys(target)))

    return {
        "globals": normalize_array_fields(normalize_keys(globals_)),
        "targets": normalized_targets,
    }


def merge_options(defaults=None, globals_=None, target=None, cli=None) -> dict:
    result = {}
    for layer in (defaults, globals_, target, cli):
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                continue
            if isinstance(value, list) and isinstance(result.get(key), list) and layer is not cli:
                merged = list(result[key])
                merged.extend(v for v in value if v not in merged)
                result[key] = merged
            else:
                result[key] = list(value) if isinstance(value, list) else value
    return result


def options_for_target(config=None, target=None, cli=None) -> CrawlOptions:
    """Resolve the effective CrawlOptions for one crawl target."""
    config = config or {}
    target_options = {k: v for k, v in (target or {}).items() if k != "url"}
    merged = merge_options(
        defaults=CrawlOptions().to_dict(),
        globals_=config.get("globals"),
        target=target_options,
        cli=cli,
    )
    return CrawlOptions.from_dict(merged)
