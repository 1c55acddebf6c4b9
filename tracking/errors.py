"""
Exception hierarchy for hypothesis graphs, model building and ground truth.
"""


class TrackingError(Exception):
    """Base class for all errors raised by multihypotracking."""


class ConsistencyError(TrackingError):
    """Variables of one feature category disagree on their number of features."""


class HypothesisReferenceError(TrackingError):
    """An annotation or constraint refers to an unknown hypothesis or link."""


class InvariantViolationError(TrackingError):
    """Ground truth needs a division, appearance or disappearance variable that is absent."""

    def __init__(self, message: str, hypothesis_id=None):
        super().__init__(message)
        self.hypothesis_id = hypothesis_id


class InconsistentAnnotationError(TrackingError):
    """Ground truth uses a link or source node more often than the model allows."""


class ExternalOptimizerError(TrackingError):
    """The solver or learner failed."""


class IllegalStateError(TrackingError):
    """An operation is not allowed in the current lifecycle state of a graph."""
