"""Ground truth, verification and end-to-end pipeline."""

from .solution_codec import SolutionCodec, parse_link_annotations
from .verifier import Verifier, VerificationReport
from .pipeline import (
    build,
    num_weights,
    weight_descriptions,
    infer,
    learn,
    reconstruct_ground_truth,
    verify,
    export,
    track,
    train,
    validate
)

__all__ = [
    'SolutionCodec',
    'parse_link_annotations',
    'Verifier',
    'VerificationReport',
    'build',
    'num_weights',
    'weight_descriptions',
    'infer',
    'learn',
    'reconstruct_ground_truth',
    'verify',
    'export',
    'track',
    'train',
    'validate'
]
