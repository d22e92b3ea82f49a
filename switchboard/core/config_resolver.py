"""
Config Resolver for the Switchboard host.

Produces a module's effective configuration:

  1. deep-merge the module's declared defaults with the definition overrides
     (records merge recursively, anything else - lists included - is replaced)
  2. substitute every value marked as environment-sourced with the variable
     ``<MODULE_NAME_UPPER>_<key>`` and remember which keys were substituted

The secret markers in the definition file (``"__secret__"`` / ``"__env__"``)
are turned into the typed ``EnvValue`` marker once, by
``parse_config_values``; after that nothing compares strings.
"""

import copy
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .exceptions import SecretResolutionError

logger = logging.getLogger(__name__)

SECRET_VAL = "__secret__"
ENV_VAL = "__env__"
REDACTED = "*****"


@dataclass(frozen=True)
class EnvValue:
    """
    A config value that must be read from the environment.

    ``variable`` overrides the conventional ``<MODULE>_<key>`` name.
    """
    variable: Optional[str] = None


def parse_config_value(value: Any) -> Any:
    """Convert secret sentinel strings (at any depth) into ``EnvValue``."""
    if isinstance(value, str) and value in (SECRET_VAL, ENV_VAL):
        return EnvValue()
    if isinstance(value, Mapping):
        return {key: parse_config_value(item) for key, item in value.items()}
    return value


def parse_config_values(raw: Optional[Mapping]) -> Dict[str, Any]:
    """Parse a raw config record; ``None`` is treated as an empty record."""
    if raw is None:
        return {}
    return parse_config_value(raw)


def deep_merge(*sources: Optional[Mapping]) -> Dict[str, Any]:
    """
    Merge records left to right into a fresh dict.

    For a key present on both sides where both values are records the merge
    recurses; otherwise the later value wins. None of the sources is mutated.

    > deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
    {'a': {'b': 1, 'c': 3}}
    """
    result: Dict[str, Any] = {}
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            current = result.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                result[key] = deep_merge(current, value)
            else:
                result[key] = copy.deepcopy(value)
    return result


def env_prefix(module_name: str) -> str:
    return module_name.upper()


def env_variable_names(module_name: str, key_path: Tuple[str, ...]) -> List[str]:
    """
    Candidate variable names for a secret key, in lookup order. A module
    name with dashes also accepts the underscored form, for shells that
    cannot export ``MY-MODULE_key``.
    """
    names = ["_".join((env_prefix(module_name),) + key_path)]
    if "-" in module_name:
        names.append("_".join((env_prefix(module_name).replace("-", "_"),) + key_path))
    return names


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    return copy.deepcopy(value)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    return copy.deepcopy(value)


class ResolvedConfig(Mapping):
    """
    Read-only view of a module's resolved configuration.

    ``secret_keys`` lists the (dotted) keys whose values came from the
    environment. It is kept beside the data, never inside it, and exists only
    so that outward-facing views can be redacted.
    """

    __slots__ = ("_data", "_secret_keys")

    def __init__(self, data: Optional[Mapping] = None, secret_keys: Tuple[str, ...] = ()):
        self._data = _freeze(data or {})
        self._secret_keys = tuple(secret_keys)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ResolvedConfig):
            return self._secret_keys == other._secret_keys and self.to_dict() == other.to_dict()
        return Mapping.__eq__(self, other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"ResolvedConfig({self.redacted()!r})"

    @property
    def secret_keys(self) -> Tuple[str, ...]:
        return self._secret_keys

    def to_dict(self) -> Dict[str, Any]:
        """Mutable deep copy of the configuration values."""
        return _thaw(self._data)

    def redacted(self) -> Dict[str, Any]:
        """Copy of the configuration with every secret-sourced value masked."""
        scrubbed = self.to_dict()
        for dotted in self._secret_keys:
            *parents, leaf = dotted.split(".")
            node = scrubbed
            for part in parents:
                node = node.get(part)
                if not isinstance(node, dict):
                    break
            else:
                if leaf in node:
                    node[leaf] = REDACTED
        return scrubbed


def _substitute(
    node: Mapping,
    module_name: str,
    path: Tuple[str, ...],
    environ: Mapping,
    secret_keys: List[str],
) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in node.items():
        key_path = path + (str(key),)
        if isinstance(value, EnvValue):
            candidates = [value.variable] if value.variable else env_variable_names(module_name, key_path)
            dotted = ".".join(key_path)
            variable = next((name for name in candidates if name in environ), None)
            if variable is None:
                raise SecretResolutionError(module_name, dotted, candidates[0])
            result[key] = environ[variable]
            secret_keys.append(dotted)
        elif isinstance(value, Mapping):
            result[key] = _substitute(value, module_name, key_path, environ, secret_keys)
        else:
            result[key] = copy.deepcopy(value)
    return result


def resolve_config(
    module_name: str,
    defaults: Optional[Mapping] = None,
    overrides: Optional[Mapping] = None,
    environ: Optional[Mapping] = None,
) -> ResolvedConfig:
    """
    Resolve a module's configuration.

    Args:
        module_name: Logical module name, used to build environment variable names
        defaults: The module's declared default configuration
        overrides: Configuration given for the module in the definition file
        environ: Environment to read secrets from (defaults to ``os.environ``)

    Returns:
        A fresh ``ResolvedConfig``; the inputs are left untouched

    Raises:
        SecretResolutionError: An environment-sourced key has no variable set
    """
    environ = os.environ if environ is None else environ
    merged = deep_merge(parse_config_values(defaults), parse_config_values(overrides))

    secret_keys: List[str] = []
    resolved = _substitute(merged, module_name, (), environ, secret_keys)

    if secret_keys:
        logger.debug(f"Resolved {len(secret_keys)} secret config value(s) for module {module_name}")
    return ResolvedConfig(resolved, tuple(secret_keys))
