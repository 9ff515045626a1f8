"""
Stream Analysis Errors

Raised when an activity's streams cannot produce a result. Each error is
terminal for the single operation that raised it; callers scanning many
activities skip the failed one and carry on.
"""


class StreamAnalysisError(ValueError):
    """Base class for stream analysis failures"""


class InvalidStreamPayloadError(StreamAnalysisError):
    """Top-level stream payload is not a record or list of records"""


class InsufficientDataError(StreamAnalysisError):
    """Required channels are missing"""


class NoValidSamplesError(StreamAnalysisError):
    """Every sample pair was filtered out"""


class ShapeMismatchError(StreamAnalysisError):
    """Distance and time channels differ in length"""


class NonMonotonicStreamError(StreamAnalysisError):
    """A channel that must be non-decreasing goes backwards"""


class CdaFitError(StreamAnalysisError):
    """Least-squares CdA fit has no solution"""
