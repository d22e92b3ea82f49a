"""
Custom exceptions for the Switchboard host.

This module defines the exception hierarchy used by the orchestration core.
Construction-time failures (bad cron syntax, missing secrets, illegal route
methods) are raised as subclasses of ``SwitchboardError`` and caught at the
narrowest scope that can survive them: a single job or a single module.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class SwitchboardError(Exception):
    """Base exception for all switchboard related errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(SwitchboardError):
    """Raised when there are configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        module_name: Optional[str] = None
    ):
        details = {
            "config_key": config_key,
            "module": module_name,
        }
        super().__init__(
            message,
            error_code="CONFIGURATION_ERROR",
            details=details
        )
        self.config_key = config_key
        self.module_name = module_name


class SecretResolutionError(ConfigurationError):
    """Raised when a secret-sourced config value has no environment variable."""

    def __init__(self, module_name: str, config_key: str, variable: str):
        super().__init__(
            f"Unable to replace a secret configuration with an environment "
            f"variable: {variable} ({config_key})",
            config_key=config_key,
            module_name=module_name
        )
        self.error_code = "SECRET_NOT_FOUND"
        self.details["variable"] = variable
        self.variable = variable


class DefinitionError(SwitchboardError):
    """Raised when the definition document cannot be read or is invalid."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message,
            error_code="DEFINITION_ERROR",
            details={"path": path}
        )
        self.path = path


class DefinitionNotFoundError(DefinitionError):
    """Raised when no definition file exists in any search location."""

    def __init__(self, searched: Optional[list] = None):
        super().__init__("Unable to find a switchboard definition file")
        self.error_code = "DEFINITION_NOT_FOUND"
        self.details["searched"] = [str(p) for p in (searched or [])]
        self.searched = searched or []


class PluginResolutionError(SwitchboardError):
    """Raised when a logical module or connection name cannot be resolved."""

    def __init__(self, name: str, target: str, reason: str):
        super().__init__(
            f"Unable to resolve {name!r} ({target}): {reason}",
            error_code="PLUGIN_RESOLUTION_ERROR",
            details={"name": name, "target": target}
        )
        self.name = name
        self.target = target


class ModuleLoadError(SwitchboardError):
    """Raised when a module cannot be driven through its load sequence."""

    def __init__(self, module_name: str, message: str, stage: Optional[str] = None):
        super().__init__(
            message,
            error_code="MODULE_LOAD_ERROR",
            details={"module": module_name, "stage": stage}
        )
        self.module_name = module_name
        self.stage = stage


class ModuleValidationError(ModuleLoadError):
    """Raised when a module's initialize or validate hook reports failure."""

    def __init__(self, module_name: str, stage: str):
        super().__init__(
            module_name,
            f"Module {module_name!r} failed its {stage} hook",
            stage=stage
        )
        self.error_code = "MODULE_VALIDATION_ERROR"


class RouteMountError(SwitchboardError):
    """Raised when a route descriptor cannot be mounted."""

    def __init__(self, message: str, method: Optional[str] = None, path: Optional[str] = None):
        super().__init__(
            message,
            error_code="ROUTE_MOUNT_ERROR",
            details={"method": method, "path": path}
        )
        self.method = method
        self.path = path


class JobValidationError(SwitchboardError):
    """Raised when job options or schedule validation fails."""

    def __init__(
        self,
        message: str,
        job_type: Optional[str] = None,
        field: Optional[str] = None,
        value: Any = None
    ):
        details = {
            "job_type": job_type,
            "field": field,
            "invalid_value": str(value) if value is not None else None,
        }
        super().__init__(
            message,
            error_code="VALIDATION_ERROR",
            details=details
        )
        self.job_type = job_type
        self.field = field
        self.value = value


class NotFoundError(SwitchboardError):
    """Base class for lookups on the control surface that found nothing."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND", **details: Any):
        super().__init__(message, error_code=error_code, details=details)


class RunningModuleNotFoundError(NotFoundError):
    """Raised when a requested module is not in the running-modules table."""

    def __init__(self, module_name: str):
        super().__init__(
            "That module was not found",
            error_code="MODULE_NOT_FOUND",
            module=module_name
        )
        self.module_name = module_name


class JobTypeNotFoundError(NotFoundError):
    """Raised when a running module does not produce the requested job type."""

    def __init__(self, module_name: str, job_type: str):
        super().__init__(
            "Unable to find the given job type",
            error_code="JOB_TYPE_NOT_FOUND",
            module=module_name,
            job_type=job_type
        )
        self.module_name = module_name
        self.job_type = job_type


class SecurityError(SwitchboardError):
    """Base class for security-related errors."""

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(
            message,
            error_code="SECURITY_ERROR",
            details={"resource": resource}
        )
        self.resource = resource


class AuthenticationError(SecurityError):
    """Raised when a bearer token is missing or invalid."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)
        self.error_code = "AUTHENTICATION_ERROR"


class AuthorizationError(SecurityError):
    """Raised when a verified caller lacks a required scope."""

    def __init__(self, message: str, required_scope: Optional[str] = None):
        super().__init__(message)
        self.error_code = "AUTHORIZATION_ERROR"
        self.details["required_scope"] = required_scope
        self.required_scope = required_scope


# Exception mapping for HTTP status codes
EXCEPTION_HTTP_STATUS_MAP = {
    JobValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    RunningModuleNotFoundError: 404,
    JobTypeNotFoundError: 404,
    NotFoundError: 404,
    ConfigurationError: 500,
    DefinitionError: 500,
    PluginResolutionError: 500,
    ModuleLoadError: 500,
    RouteMountError: 500,
    SwitchboardError: 500,  # Default fallback
}


def http_status_for(exc: SwitchboardError) -> int:
    """Return the HTTP status for an exception, walking its class hierarchy."""
    for klass in type(exc).__mro__:
        if klass in EXCEPTION_HTTP_STATUS_MAP:
            return EXCEPTION_HTTP_STATUS_MAP[klass]
    return 500
