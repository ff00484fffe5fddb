"""Exception hierarchy for narrative generation.

Upstream errors are returned as values inside ``GenerationResult`` and
never propagate past the section that produced them. Structural errors
(unknown section, unknown entity) are raised to the immediate caller.
"""


class PolicyNarrativeError(Exception):
    """Base class for all package errors."""


class UpstreamError(PolicyNarrativeError):
    """A single text-generation call did not produce usable text."""


class ConfigurationMissing(UpstreamError):
    """No API credential is configured; no request was sent."""


class UpstreamTransportError(UpstreamError):
    """The request failed in transport or returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamEnvelopeError(UpstreamError):
    """The provider answered 2xx but the envelope had no extractable text."""


class UnknownSectionError(PolicyNarrativeError, ValueError):
    """A prompt was requested for a section outside the closed set."""


class UnknownEntityError(PolicyNarrativeError, LookupError):
    """No precomputed record exists for the requested entity key."""


class StoreError(PolicyNarrativeError):
    """The durable result store could not be read or written."""
