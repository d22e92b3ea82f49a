"""
Connections and the connection registry.

A connection wraps a third-party integration (an issue tracker, a chat
service, ...). Implementations are registered by name once at startup;
modules then ask the registry for instances configured for their own use.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[Dict[str, Any], Dict[str, Any]], "Connection"]


class Connection(ABC):
    """
    Base class for connections.

    Construction connects immediately. ``config`` holds the values requested
    by the module; ``global_config`` the values registered with the
    connection in the definition file.
    """

    name: str = "connection"

    def __init__(self, config: Optional[Mapping[str, Any]] = None,
                 global_config: Optional[Mapping[str, Any]] = None):
        self.config: Dict[str, Any] = dict(config or {})
        self.global_config: Dict[str, Any] = dict(global_config or {})
        self.connect()

    @abstractmethod
    def connect(self) -> "Connection":
        """Open the underlying client."""

    @abstractmethod
    def disconnect(self) -> bool:
        """Release the underlying client."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


class ConnectionRegistry:
    """Maps connection names to factories."""

    def __init__(self, resolver=None):
        self.resolver = resolver
        self._factories: Dict[str, Tuple[ConnectionFactory, Dict[str, Any]]] = {}

    def register(self, definition) -> None:
        """
        Resolve the implementation of a ``ConnectionDefinition`` and store its
        factory under the definition's name. A later registration with the same
        name replaces the earlier one.

        Raises:
            PluginResolutionError: The implementation could not be found
        """
        if self.resolver is None:
            raise RuntimeError("ConnectionRegistry has no plugin resolver")

        factory = self.resolver.resolve_connection_factory(
            definition.name, path=definition.path, scope=definition.scope
        )
        self.register_factory(definition.name, factory, definition.global_config)

    def register_factory(self, name: str, factory: ConnectionFactory,
                         global_config: Optional[Mapping[str, Any]] = None) -> None:
        if name in self._factories:
            logger.info(f"Connection {name} was already registered; replacing it")
        self._factories[name] = (factory, dict(global_config or {}))
        logger.info(f"Registered connection {name}")

    def has(self, name: str) -> bool:
        return name in self._factories

    @property
    def names(self):
        return list(self._factories)

    def instantiate(self, name: str, config: Optional[Mapping[str, Any]] = None) -> Optional[Connection]:
        """
        Build a connection instance, or return ``None`` (logged) when the name
        is unknown or the factory fails. Never raises.
        """
        entry = self._factories.get(name)
        if entry is None:
            logger.error(f"Unable to find connection {name}; was it listed in the definition file?")
            return None

        factory, global_config = entry
        try:
            return factory(dict(config or {}), dict(global_config))
        except Exception as e:
            logger.error(f"Unable to instantiate connection {name}: {e}", exc_info=True)
            return None
