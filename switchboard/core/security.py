"""
Authorization gate for the Switchboard host.

Protected module routes and the control surface sit behind ``AuthGate``, a
FastAPI dependency that verifies an ``Authorization: Bearer <jwt>`` header.
Keys come either from a JWKS endpoint or from a shared secret, both taken
from the ``authentication`` section of the definition's global config.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import jwt
from fastapi import Request
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientError

from .exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


@dataclass
class AuthSettings:
    """Token verification parameters."""
    jwks_uri: Optional[str] = None
    secret: Optional[str] = None
    audience: Optional[str] = None
    issuer: Optional[str] = None
    algorithms: List[str] = field(default_factory=list)

    @classmethod
    def from_global_config(cls, global_config: Optional[Mapping[str, Any]]) -> "AuthSettings":
        auth = dict((global_config or {}).get("authentication") or {})
        jwks_uri = auth.get("jwksUri")
        algorithms = auth.get("algorithms") or (["RS256"] if jwks_uri else ["HS256"])
        return cls(
            jwks_uri=jwks_uri,
            secret=auth.get("secret"),
            audience=auth.get("audience"),
            issuer=auth.get("issuer"),
            algorithms=list(algorithms),
        )

    @property
    def configured(self) -> bool:
        return bool(self.jwks_uri or self.secret)


class AuthGate:
    """
    FastAPI dependency that rejects requests without a valid bearer token.

    With no key material configured every request is rejected. ``disabled``
    lets everything through and exists for local development only.
    """

    def __init__(self, settings: Optional[AuthSettings] = None, disabled: bool = False):
        self.settings = settings or AuthSettings()
        self.disabled = disabled
        self._jwks_client = PyJWKClient(self.settings.jwks_uri) if self.settings.jwks_uri else None

        if disabled:
            logger.warning("Authorization gate is disabled; protected routes are open")
        elif not self.settings.configured:
            logger.warning("No authentication configured; protected routes will reject every request")

    def __call__(self, request: Request) -> Dict[str, Any]:
        if self.disabled:
            request.state.auth_disabled = True
            request.state.user = {}
            return {}

        claims = self.verify_token(self._bearer_token(request))
        request.state.user = claims
        return claims

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT; raises ``AuthenticationError``."""
        if not self.settings.configured:
            raise AuthenticationError("Authentication is not configured")

        try:
            if self._jwks_client is not None:
                key = self._jwks_client.get_signing_key_from_jwt(token).key
            else:
                key = self.settings.secret

            return jwt.decode(
                token,
                key,
                algorithms=self.settings.algorithms,
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={"verify_aud": self.settings.audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except PyJWKClientError as e:
            raise AuthenticationError(f"Unable to find a signing key: {str(e)}")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {str(e)}")

    @staticmethod
    def _bearer_token(request: Request) -> str:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Authentication token required")
        return token.strip()


def require_scope(scope: str) -> Callable[[Request], None]:
    """
    Build a dependency that answers 403 when the verified token's
    space-separated ``scope`` claim does not include ``scope``. Must run after
    ``AuthGate``.
    """
    def check_scope(request: Request) -> None:
        if getattr(request.state, "auth_disabled", False):
            return

        claims = getattr(request.state, "user", None) or {}
        granted = claims.get("scope") or ""
        if isinstance(granted, str):
            granted = granted.split(" ")

        if scope not in granted:
            raise AuthorizationError(f"Cannot perform action. Missing scope {scope}", required_scope=scope)

    return check_scope
