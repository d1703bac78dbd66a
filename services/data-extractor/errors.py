"""Error taxonomy for the extraction pipeline.

Every error aborts the request it occurs in; the HTTP layer turns it into a
single ``{"error": message}`` body.
"""


class ExtractorError(Exception):
    """Base class for all extraction pipeline errors."""


class ValidationError(ExtractorError):
    """Malformed request shape (field lists empty, mismatched or duplicated)."""


class ParseError(ExtractorError):
    """Model output could not be parsed or validated, even after repair."""

    def __init__(self, message: str, llm_output: str = ""):
        super().__init__(message)
        self.llm_output = llm_output


class MatchError(ExtractorError):
    """The model did not identify a schema field for a question."""


class AmbiguousOutputError(ExtractorError):
    """The question rewrite step returned more than one output value."""


class MissingKeyError(ExtractorError):
    """A required chain input key is absent."""


class UpstreamError(ExtractorError):
    """The language model or vector index collaborator failed."""
