"""Custom exception hierarchy for the personalization core.

All application exceptions inherit from :class:`PersonalizationError`,
which carries an optional ``provider_name`` so error handlers can identify
which backend (e.g. "sqlite_catalog", "sqlite_preferences") caused the
failure.

The hierarchy is organized by concern:

    PersonalizationError  (base -- catch-all for any application error)
    +-- DataSourceError        (catalog queries; total aggregation failure)
    +-- EnrichmentError        (batched sub-entity lookup)
    +-- PersistenceError       (preference storage reads/writes)
    +-- ConfigurationError     (startup / missing config)

Only :class:`DataSourceError` is meant to reach the UI, where it is rendered
as a retry affordance.  Enrichment and persistence failures are recovered
locally by their callers and only ever show up in the logs.
"""


class PersonalizationError(Exception):
    """Base exception for all personalization errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[sqlite_catalog] database is locked``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Data access errors
# ---------------------------------------------------------------------------

class DataSourceError(PersonalizationError):
    """Raised when the catalog cannot produce candidates.

    Single tier failures are absorbed by the aggregator; this error is
    raised to the caller when every invoked tier failed or none was eligible.
    """

    def __init__(
        self,
        message: str = "Data source query failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EnrichmentError(PersonalizationError):
    """Raised when the batched sub-entity lookup fails."""

    def __init__(
        self,
        message: str = "Batch enrichment lookup failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Preference persistence errors
# ---------------------------------------------------------------------------

class PersistenceError(PersonalizationError):
    """Raised by preference storage backends when a read or write fails.

    :class:`~src.services.preference_store.PreferenceStore` catches this,
    logs it and keeps its in-memory state.
    """

    def __init__(
        self,
        message: str = "Preference persistence failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(PersonalizationError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
