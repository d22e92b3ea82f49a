"""
Core module for the Switchboard host.

This module provides the extension contract (modules, jobs, connections,
routes) and the components that load and run them.
"""

from .config_resolver import EnvValue, ResolvedConfig, resolve_config, deep_merge
from .config_rules import ConfigRule, check_config, get_nested_value
from .jobs import Job, JobDefinition, JobStatus
from .scheduler import CronScheduler
from .connections import Connection, ConnectionRegistry
from .routes import RouteDescriptor, RouteMounter, list_routes
from .security import AuthGate, AuthSettings, require_scope
from .modules import SwitchboardModule, ActiveModule, ConnectionRequest
from .exceptions import (
    SwitchboardError,
    ConfigurationError,
    SecretResolutionError,
    DefinitionError,
    DefinitionNotFoundError,
    PluginResolutionError,
    ModuleLoadError,
    ModuleValidationError,
    RouteMountError,
    JobValidationError,
    RunningModuleNotFoundError,
    JobTypeNotFoundError,
    AuthenticationError,
    AuthorizationError,
)

__all__ = [
    # Extension contract
    "SwitchboardModule",
    "ActiveModule",
    "ConnectionRequest",
    "Job",
    "JobDefinition",
    "JobStatus",
    "Connection",
    "RouteDescriptor",

    # Configuration
    "EnvValue",
    "ResolvedConfig",
    "resolve_config",
    "deep_merge",
    "ConfigRule",
    "check_config",
    "get_nested_value",

    # Host components
    "CronScheduler",
    "ConnectionRegistry",
    "RouteMounter",
    "list_routes",
    "AuthGate",
    "AuthSettings",
    "require_scope",

    # Exception hierarchy
    "SwitchboardError",
    "ConfigurationError",
    "SecretResolutionError",
    "DefinitionError",
    "DefinitionNotFoundError",
    "PluginResolutionError",
    "ModuleLoadError",
    "ModuleValidationError",
    "RouteMountError",
    "JobValidationError",
    "RunningModuleNotFoundError",
    "JobTypeNotFoundError",
    "AuthenticationError",
    "AuthorizationError",
]
