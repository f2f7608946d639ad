"""Authentication adapters."""

from workitem_runner.infrastructure.auth.authenticators import (
    DEFAULT_SCOPES,
    StaticTokenAuthenticator,
    TwoLeggedAuthenticator,
)

__all__ = ["DEFAULT_SCOPES", "StaticTokenAuthenticator", "TwoLeggedAuthenticator"]
