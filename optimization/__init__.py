"""Optimization model, ILP solver and structured learning."""

from .model import OptimizationModel, WeightedFactor, LinearConstraint
from .model_builder import ModelBuilder, build_model
from .solver import IlpSolver
from .learner import StructMaxMarginLearner, hamming_loss

__all__ = [
    'OptimizationModel',
    'WeightedFactor',
    'LinearConstraint',
    'ModelBuilder',
    'build_model',
    'IlpSolver',
    'StructMaxMarginLearner',
    'hamming_loss'
]
