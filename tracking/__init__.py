"""Hypothesis graph data model for multihypotracking."""

from .errors import (
    TrackingError,
    ConsistencyError,
    HypothesisReferenceError,
    InvariantViolationError,
    InconsistentAnnotationError,
    ExternalOptimizerError,
    IllegalStateError
)
from .variable import Variable
from .hypotheses import SegmentationHypothesis, LinkingHypothesis
from .exclusion_constraint import ExclusionConstraint
from .hypothesis_graph import HypothesisGraph, GraphState
from .weight_layout import WeightLayout, FeatureCategory, CATEGORY_ORDER

__all__ = [
    'TrackingError',
    'ConsistencyError',
    'HypothesisReferenceError',
    'InvariantViolationError',
    'InconsistentAnnotationError',
    'ExternalOptimizerError',
    'IllegalStateError',
    'Variable',
    'SegmentationHypothesis',
    'LinkingHypothesis',
    'ExclusionConstraint',
    'HypothesisGraph',
    'GraphState',
    'WeightLayout',
    'FeatureCategory',
    'CATEGORY_ORDER'
]
