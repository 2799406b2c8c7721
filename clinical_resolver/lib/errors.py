"""Error taxonomy for the query resolution engine.

Only ``InputValidationError`` ever reaches a caller of
``QueryResolutionOrchestrator.process_query``. The remaining errors are raised
inside a tier and recovered there.
"""


class ResolverError(Exception):
    """Base class for all resolver errors."""


class InputValidationError(ResolverError, ValueError):
    """Caller input failed validation (blank query text, bad rating)."""

    def __init__(self, message: str = "Query text is required", field: str = "text"):
        super().__init__(message)
        self.message = message
        self.field = field


class TierMissError(ResolverError):
    """A tier produced nothing usable (empty result, low score or failure)."""

    def __init__(self, tier: str, reason: str):
        super().__init__(f"{tier} miss: {reason}")
        self.tier = tier
        self.reason = reason


class ProviderUnavailableError(ResolverError):
    """No premium account could be reserved for the selected provider."""

    def __init__(self, provider_id: str):
        super().__init__(f"No premium account available for provider {provider_id}")
        self.provider_id = provider_id


class ProviderCallError(ResolverError):
    """The premium provider call failed."""

    def __init__(self, provider: str, cause: Exception | None = None):
        message = f"Provider {provider} call failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.provider = provider
        self.cause = cause


class ConfigurationError(ResolverError):
    """Configuration file or environment value is invalid."""
