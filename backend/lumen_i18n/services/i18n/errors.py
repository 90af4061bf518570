from __future__ import annotations


class LocalizationError(RuntimeError):
    """Base class for localization pipeline failures."""


class MissingSourceText(LocalizationError):
    """Raised when a key has no value in the source language, so there is nothing to translate."""

    def __init__(self, key: str, source_language: str) -> None:
        super().__init__(f"No {source_language!r} source text for key {key!r}")
        self.key = key
        self.source_language = source_language


class ProviderError(LocalizationError):
    """Raised when the machine translation provider fails for a whole call."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code


class ProviderTimeout(ProviderError):
    """Raised when a provider call exceeds the configured timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Translation provider did not answer within {timeout_seconds:.1f}s",
            failure_kind="timeout",
        )
        self.timeout_seconds = timeout_seconds


class StoreError(LocalizationError):
    """Raised when the translation store cannot be reached or rejects a query."""
