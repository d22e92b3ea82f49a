"""
Switchboard: a host for pluggable integration modules.

Module authors import the extension contract from here:

    from switchboard import SwitchboardModule, Job, RouteDescriptor
"""

from .core import (
    SwitchboardModule,
    ActiveModule,
    ConnectionRequest,
    Job,
    JobDefinition,
    JobStatus,
    Connection,
    RouteDescriptor,
    EnvValue,
    ResolvedConfig,
    ConfigRule,
    check_config,
)

__version__ = "1.0.0"
