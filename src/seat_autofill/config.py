"""
Run options from YAML.

Example::

    sort_rules:
      - {field: ranking, direction: asc}
    table_rules:
      ratio: {enabled: true, internal_ratio: 2, external_ratio: 1}
      spacing: {enabled: false, spacing: 1, start_with_external: false}
    proximity_rules:
      sit_together: [[g1, g2]]
      sit_away:
        - {guest1_id: g3, guest2_id: g4}
    randomize_order:
      enabled: true
      seed: 7
      partitions:
        - {min_rank: 5, max_rank: 10}
    include_internal: true
    include_external: true
    max_sit_away_attempts: 20

Every section is optional.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .engine import AutoFillModel
from .models import (
    ProximityRule,
    ProximityRules,
    RandomizeOrder,
    RandomizePartition,
    RatioRule,
    SeatAutoFillError,
    SortDirection,
    SortField,
    SortRule,
    SpacingRule,
    TableRules,
    parse_bool,
)
from .optimize import DEFAULT_MAX_SIT_AWAY_ATTEMPTS
from .sorting import DEFAULT_SORT_RULES

logger = logging.getLogger(__name__)


class ConfigurationError(SeatAutoFillError):
    """Raised when configuration is invalid"""


@dataclass
class AutoFillOptions:
    sort_rules: List[SortRule] = field(default_factory=lambda: list(DEFAULT_SORT_RULES))
    table_rules: TableRules = field(default_factory=TableRules)
    proximity_rules: ProximityRules = field(default_factory=ProximityRules)
    randomize_order: Optional[RandomizeOrder] = None
    include_internal: bool = True
    include_external: bool = True
    max_sit_away_attempts: int = DEFAULT_MAX_SIT_AWAY_ATTEMPTS

    def to_model(self) -> AutoFillModel:
        return AutoFillModel(
            sort_rules=self.sort_rules,
            table_rules=self.table_rules,
            proximity_rules=self.proximity_rules,
            randomize_order=self.randomize_order,
            include_internal=self.include_internal,
            include_external=self.include_external,
            max_sit_away_attempts=self.max_sit_away_attempts,
        )


def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a mapping at the top level")
    return config


def _section(config: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping")
    return value


def _number(section: Dict[str, Any], key: str, default: float, name: str) -> float:
    value = section.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name}.{key} must be a number, got {value!r}")


def parse_sort_rules(entries: Any) -> List[SortRule]:
    if not entries:
        return list(DEFAULT_SORT_RULES)
    if not isinstance(entries, list):
        raise ConfigurationError("'sort_rules' must be a list")
    rules = []
    for entry in entries:
        if not isinstance(entry, dict) or "field" not in entry:
            raise ConfigurationError(f"Sort rule needs a 'field': {entry!r}")
        try:
            sort_field = SortField(str(entry["field"]).lower())
            direction = SortDirection(str(entry.get("direction", "asc")).lower())
        except ValueError as e:
            raise ConfigurationError(f"Invalid sort rule {entry!r}: {e}")
        rules.append(SortRule(sort_field, direction))
    return rules


def parse_table_rules(section: Dict[str, Any]) -> TableRules:
    ratio = section.get("ratio") or {}
    spacing = section.get("spacing") or {}
    if not isinstance(ratio, dict) or not isinstance(spacing, dict):
        raise ConfigurationError("'table_rules.ratio' and 'table_rules.spacing' must be mappings")

    ratio_rule = RatioRule(
        enabled=parse_bool(ratio.get("enabled", False)),
        internal_ratio=_number(ratio, "internal_ratio", 1, "ratio"),
        external_ratio=_number(ratio, "external_ratio", 1, "ratio"),
    )
    if ratio_rule.internal_ratio < 0 or ratio_rule.external_ratio < 0:
        raise ConfigurationError("Ratio values must not be negative")

    spacing_value = _number(spacing, "spacing", 1, "spacing")
    if spacing_value < 0 or spacing_value != int(spacing_value):
        raise ConfigurationError(f"spacing.spacing must be a non-negative integer, got {spacing_value}")
    spacing_rule = SpacingRule(
        enabled=parse_bool(spacing.get("enabled", False)),
        spacing=int(spacing_value),
        start_with_external=parse_bool(spacing.get("start_with_external", False)),
    )
    if ratio_rule.enabled and spacing_rule.enabled:
        logger.info("Both ratio and spacing enabled; spacing takes precedence")
    return TableRules(ratio=ratio_rule, spacing=spacing_rule)


def _parse_pair(entry: Any, kind: str) -> ProximityRule:
    if isinstance(entry, dict):
        try:
            return ProximityRule(str(entry["guest1_id"]), str(entry["guest2_id"]), str(entry.get("id", "")))
        except KeyError as e:
            raise ConfigurationError(f"{kind} rule missing {e}: {entry!r}")
    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        return ProximityRule(str(entry[0]), str(entry[1]))
    raise ConfigurationError(f"Invalid {kind} rule: {entry!r}")


def parse_proximity_rules(section: Dict[str, Any]) -> ProximityRules:
    together = section.get("sit_together") or []
    away = section.get("sit_away") or []
    if not isinstance(together, list) or not isinstance(away, list):
        raise ConfigurationError("Proximity rules must be lists of guest pairs")
    return ProximityRules(
        sit_together=[_parse_pair(e, "sit_together") for e in together],
        sit_away=[_parse_pair(e, "sit_away") for e in away],
    )


def parse_randomize_order(section: Dict[str, Any]) -> Optional[RandomizeOrder]:
    if not section:
        return None
    partitions = []
    for entry in section.get("partitions") or []:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Invalid randomize partition: {entry!r}")
        min_rank = _number(entry, "min_rank", 0, "partition")
        max_rank = _number(entry, "max_rank", 0, "partition")
        if max_rank <= min_rank:
            raise ConfigurationError(f"Partition max_rank must exceed min_rank: {entry!r}")
        partitions.append(RandomizePartition(min_rank, max_rank))
    seed = section.get("seed")
    if seed is not None:
        try:
            seed = int(seed)
        except (TypeError, ValueError):
            raise ConfigurationError(f"randomize_order.seed must be an integer, got {seed!r}")
    return RandomizeOrder(
        enabled=parse_bool(section.get("enabled", False)),
        partitions=partitions,
        seed=seed,
    )


def options_from_dict(config: Dict[str, Any]) -> AutoFillOptions:
    attempts = config.get("max_sit_away_attempts", DEFAULT_MAX_SIT_AWAY_ATTEMPTS)
    try:
        attempts = int(attempts)
    except (TypeError, ValueError):
        raise ConfigurationError(f"max_sit_away_attempts must be an integer, got {attempts!r}")
    if attempts < 0:
        raise ConfigurationError("max_sit_away_attempts must not be negative")

    return AutoFillOptions(
        sort_rules=parse_sort_rules(config.get("sort_rules")),
        table_rules=parse_table_rules(_section(config, "table_rules")),
        proximity_rules=parse_proximity_rules(_section(config, "proximity_rules")),
        randomize_order=parse_randomize_order(_section(config, "randomize_order")),
        include_internal=parse_bool(config.get("include_internal", True)),
        include_external=parse_bool(config.get("include_external", True)),
        max_sit_away_attempts=attempts,
    )


def load_options(config_path: Path | str) -> AutoFillOptions:
    """Read a YAML options file into ``AutoFillOptions``."""
    return options_from_dict(load_config(config_path))
