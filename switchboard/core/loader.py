"""
Plugin resolution.

This is the one place where a logical name from the definition file becomes
a Python object. Targets registered with ``PluginResolver.register`` win;
otherwise the name is imported:

  - ``path``  -> the package or file ``<project_root>/<path>/<name>``
  - ``scope`` -> the importable module ``<scope>.<name>``
  - neither   -> the importable module ``<name>``

Dashes in names become underscores for the import. A module plugin exposes
``module`` (a ``SwitchboardModule`` instance or subclass); a connection
plugin exposes ``create_connection(config, global_config)``.
"""

import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Optional, Union

from .exceptions import PluginResolutionError
from .modules import SwitchboardModule

logger = logging.getLogger(__name__)


def _import_name(name: str) -> str:
    return name.replace("-", "_")


class PluginResolver:
    """Resolves module and connection names to implementations."""

    def __init__(self, project_root: Union[str, Path, None] = None):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._registry: Dict[str, Any] = {}

    def register(self, name: str, target: Any) -> None:
        """Statically bind ``name`` to an object, bypassing any import."""
        self._registry[name] = target

    def resolve(self, name: str, path: Optional[str] = None, scope: Optional[str] = None) -> Any:
        """
        Return the registered target or imported Python module for ``name``.

        Raises:
            PluginResolutionError: Nothing could be found for the name
        """
        if name in self._registry:
            return self._registry[name]

        if path and scope:
            raise PluginResolutionError(name, f"{path} | {scope}", "path and scope cannot both be given")

        if path:
            return self._load_from_path(name, path)

        target = f"{scope}.{_import_name(name)}" if scope else _import_name(name)
        try:
            return importlib.import_module(target)
        except ImportError as e:
            raise PluginResolutionError(name, target, str(e)) from e
        except Exception as e:
            raise PluginResolutionError(name, target, f"import failed: {e}") from e

    def resolve_module(self, name: str, path: Optional[str] = None,
                       scope: Optional[str] = None) -> SwitchboardModule:
        target = self.resolve(name, path=path, scope=scope)
        candidate = getattr(target, "module", None) if isinstance(target, ModuleType) else target

        if isinstance(candidate, type) and issubclass(candidate, SwitchboardModule):
            candidate = candidate()

        if not isinstance(candidate, SwitchboardModule):
            raise PluginResolutionError(name, path or scope or name, "no switchboard module exposed as 'module'")

        if not candidate.name:
            candidate.name = name
        return candidate

    def resolve_connection_factory(self, name: str, path: Optional[str] = None,
                                   scope: Optional[str] = None) -> Callable[..., Any]:
        target = self.resolve(name, path=path, scope=scope)
        factory = getattr(target, "create_connection", None) if isinstance(target, ModuleType) else target

        if not callable(factory):
            raise PluginResolutionError(name, path or scope or name, "no 'create_connection' factory exposed")
        return factory

    def _load_from_path(self, name: str, path: str) -> ModuleType:
        base = self.project_root / path / name
        package_init = base / "__init__.py"
        module_file = base.parent / f"{base.name}.py"

        if package_init.is_file():
            location, search_locations = package_init, [str(base)]
        elif module_file.is_file():
            location, search_locations = module_file, None
        else:
            raise PluginResolutionError(name, str(base), "no package or .py file at that location")

        module_name = f"_switchboard_plugin_{_import_name(name)}"
        spec = importlib.util.spec_from_file_location(
            module_name, location, submodule_search_locations=search_locations
        )
        if spec is None or spec.loader is None:
            raise PluginResolutionError(name, str(location), "unable to build an import spec")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginResolutionError(name, str(location), f"import failed: {e}") from e

        logger.debug(f"Loaded plugin {name} from {location}")
        return module
