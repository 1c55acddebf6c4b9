"""
End-to-end operations on hypothesis graphs.

A graph is built once and then either solved (infer) or learned on
(learn). Ground truth reconstruction, verification and export reuse the
already built graph.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np

from config import Config
from optimization.learner import StructMaxMarginLearner
from optimization.model_builder import build_model
from optimization.solver import IlpSolver
from tracking.errors import IllegalStateError
from tracking.hypothesis_graph import (
    WEIGHT_DESCRIPTIONS_KEY,
    WEIGHTS_KEY,
    GraphState,
    HypothesisGraph
)
from tracking.weight_layout import WeightLayout
from utils import get_logger

from .solution_codec import SolutionCodec
from .verifier import Verifier

logger = get_logger('evaluation.pipeline')


def build(spec: Dict) -> HypothesisGraph:
    """Create a hypothesis graph from a graph specification dictionary."""
    graph = HypothesisGraph.from_spec(spec)
    logger.info(
        f"Graph contains {graph.num_segmentations} segmentation hypotheses, "
        f"{graph.num_links} linking hypotheses and {graph.num_exclusions} exclusions"
    )
    return graph


def num_weights(graph: HypothesisGraph) -> int:
    return WeightLayout.from_graph(graph).num_weights


def weight_descriptions(graph: HypothesisGraph) -> List[str]:
    return WeightLayout.from_graph(graph).descriptions()


def _require_unused(graph: HypothesisGraph, action: str):
    if graph.state not in (GraphState.EMPTY, GraphState.BUILT):
        raise IllegalStateError(
            f"Cannot {action} on a graph in state '{graph.state.value}'; "
            "build a new graph to run again"
        )


def _ensure_built(graph: HypothesisGraph, weights: Optional[Sequence[float]] = None):
    if graph.state is GraphState.EMPTY:
        build_model(graph, weights)
        return
    graph.require_built()
    if weights is not None:
        graph.model.set_weights(weights)


def infer(
    graph: HypothesisGraph,
    weights: Sequence[float],
    config: Optional[Config] = None
) -> np.ndarray:
    """
    Find the minimum energy solution for the given weights.

    Args:
        graph: Graph in EMPTY (will be built) or BUILT state.
        weights: Weight vector of length num_weights(graph).
        config: Solver settings.

    Returns:
        Solution vector.
    """
    config = config or Config()
    _require_unused(graph, 'infer')
    _ensure_built(graph, weights)
    graph.transition(GraphState.SOLVED)

    solver = IlpSolver(config.solver)
    solution = solver.solve(graph.model)
    logger.info(f"solution has energy: {solver.last_energy}")
    return solution


def reconstruct_ground_truth(graph: HypothesisGraph, gt_spec: Dict) -> np.ndarray:
    """
    Expand sparse link annotations into a full solution.

    Builds the graph with zero weights if it has not been built yet.
    """
    _ensure_built(graph)
    return SolutionCodec(graph).reconstruct_ground_truth(gt_spec)


def learn(
    graph: HypothesisGraph,
    gt_spec: Dict,
    config: Optional[Config] = None
) -> np.ndarray:
    """
    Learn a weight vector from ground truth link annotations.

    Args:
        graph: Graph in EMPTY or BUILT state.
        gt_spec: Ground truth {"linkResults": [...]}.
        config: Learning and solver settings.

    Returns:
        Learned weight vector.
    """
    config = config or Config()
    _require_unused(graph, 'learn')
    ground_truth = reconstruct_ground_truth(graph, gt_spec)
    graph.transition(GraphState.LEARNED)

    learner = StructMaxMarginLearner(config.learning, IlpSolver(config.solver))
    logger.info("Calling learn()...")
    return learner.learn(graph.model, ground_truth)


def verify(graph: HypothesisGraph, solution) -> bool:
    return Verifier(graph).verify(solution).valid


def export(graph: HypothesisGraph, solution) -> Dict:
    return SolutionCodec(graph).export(solution)


# ----------------------------------------------------------------------
# Dictionary level entry points


def track(graph_spec: Dict, weights_spec: Dict, config: Optional[Config] = None) -> Dict:
    """
    Solve a graph given as dictionary with weights given as {"weights": [...]}.

    Returns:
        Result dictionary {"linkResults": [...]}.
    """
    graph = build(graph_spec)
    solution = infer(graph, weights_spec[WEIGHTS_KEY], config)
    return export(graph, solution)


def train(graph_spec: Dict, gt_spec: Dict, config: Optional[Config] = None) -> Dict:
    """
    Learn weights on a graph given as dictionary.

    Returns:
        {"weights": [...], "weightDescriptions": [...]}.
    """
    graph = build(graph_spec)
    descriptions = weight_descriptions(graph)
    weights = learn(graph, gt_spec, config)
    return {
        WEIGHTS_KEY: [float(w) for w in weights],
        WEIGHT_DESCRIPTIONS_KEY: descriptions
    }


def validate(graph_spec: Dict, gt_spec: Dict) -> bool:
    """Reconstruct the ground truth of a graph and check that it is a valid solution."""
    graph = build(graph_spec)
    solution = reconstruct_ground_truth(graph, gt_spec)
    return verify(graph, solution)
