"""
Analysis Module

Provides stream normalization, power estimation, best-effort search
and CdA fitting.
"""

from .best_efforts import (
    ActivityMetadata,
    BestEffort,
    BestEffortTracker,
    format_duration,
    PaceBand,
    qualifies_for_best_efforts,
    reduce_best_efforts,
    target_label,
)
from .cda_fitter import (
    compute_linear_terms,
    evaluate_cda,
    fit_cda,
    LinearPowerTerms,
    qualifies_for_cda_fit,
    RideEvaluation,
    RideRecord,
    summarize_errors,
)
from .errors import (
    CdaFitError,
    InsufficientDataError,
    InvalidStreamPayloadError,
    NonMonotonicStreamError,
    NoValidSamplesError,
    ShapeMismatchError,
    StreamAnalysisError,
)
from .power_estimator import (
    estimate_power,
    PhysicalConfig,
    PowerEstimator,
    PowerSummary,
)
from .segment_extractor import best_window, best_windows, SegmentCandidate
from .streams import (
    detect_stream_shape,
    normalize_streams,
    NormalizedStreams,
    smooth_altitude,
    StreamShape,
)

__all__ = [
    "StreamShape",
    "NormalizedStreams",
    "detect_stream_shape",
    "normalize_streams",
    "smooth_altitude",
    "PhysicalConfig",
    "PowerSummary",
    "PowerEstimator",
    "estimate_power",
    "SegmentCandidate",
    "best_window",
    "best_windows",
    "ActivityMetadata",
    "BestEffort",
    "BestEffortTracker",
    "PaceBand",
    "format_duration",
    "qualifies_for_best_efforts",
    "reduce_best_efforts",
    "target_label",
    "LinearPowerTerms",
    "RideRecord",
    "RideEvaluation",
    "compute_linear_terms",
    "fit_cda",
    "evaluate_cda",
    "summarize_errors",
    "qualifies_for_cda_fit",
    "StreamAnalysisError",
    "InvalidStreamPayloadError",
    "InsufficientDataError",
    "NoValidSamplesError",
    "ShapeMismatchError",
    "NonMonotonicStreamError",
    "CdaFitError",
]
