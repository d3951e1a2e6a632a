"""Error taxonomy for the normalization pipeline.

Every error carries the JSON-pointer location of the offending node so the
caller can report it without re-walking the document.
"""


class NormalizerError(Exception):
    """Base class for all errors raised by oas-normalizer."""

    def __init__(self, message: str, location: str = ""):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class StructuralError(NormalizerError):
    """The input does not have the minimal shape the pipeline requires."""


class CycleLimitExceeded(NormalizerError):
    """Schema nesting (or reference re-entry) went past the configured depth."""


class UniquenessExhausted(NormalizerError):
    """No free numeric suffix was left for an operation identifier."""


class LoadError(NormalizerError):
    """The source document could not be read, fetched or parsed."""
