"""
Declarative checks for module configuration.

Modules describe what their configuration must look like as groups of
``ConfigRule`` and call ``check_config`` from their ``validate`` hook.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class ConfigRule:
    """A single expectation about one (dotted) config key."""
    name: str
    required: bool = False
    level: str = "error"  # "error" or "warning"
    reason: str = ""
    types: Sequence[str] = field(default_factory=tuple)  # string, number, boolean, object, list
    regex: Optional[str] = None


def get_nested_value(ob: Optional[Mapping], key: str, default: Any = None) -> Any:
    """
    Walk ``ob`` along a dot-delimited key.

    > get_nested_value({"my": {"part": 1}}, "my.part")
    1
    """
    if not ob or not key:
        return default

    node: Any = ob
    for part in key.split("."):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        else:
            return default
    return node


def config_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


def _evaluate(config: Mapping, rule: ConfigRule) -> List[str]:
    failures = []
    value = get_nested_value(config, rule.name, _MISSING)

    if value is _MISSING:
        if rule.required:
            failures.append("Not Found")
        return failures

    tp = config_type(value)
    if rule.types and tp not in rule.types:
        failures.append("Invalid Type")

    if rule.regex and tp == "string" and not re.search(rule.regex, value):
        failures.append("Invalid Format")

    return failures


def check_config(
    config: Mapping,
    rule_groups: Dict[str, List[ConfigRule]],
    log: Optional[logging.Logger] = None,
) -> int:
    """
    Run every rule against ``config`` and log the outcome of each.

    Returns:
        The number of error-level failures; warnings are only logged.
    """
    log = log or logger
    error_count = 0

    log.info("Starting configuration check...")
    for group_name, rules in rule_groups.items():
        log.info(f"> Group: {group_name}")
        for rule in rules:
            failures = _evaluate(config, rule)
            if not failures:
                log.info(f"   >> ok {rule.name}")
                continue

            for failure in failures:
                if rule.level == "error":
                    log.error(f"   >> failed {rule.name} - {failure} - {rule.reason}")
                    error_count += 1
                else:
                    log.warning(f"   >> warning {rule.name} - {failure} - {rule.reason}")

    return error_count
