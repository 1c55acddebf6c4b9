"""
Build an OptimizationModel from a HypothesisGraph.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np

from tracking.hypothesis_graph import GraphState, HypothesisGraph
from tracking.weight_layout import CATEGORY_ORDER, FeatureCategory, WeightLayout
from utils import get_logger

from .model import OptimizationModel

logger = get_logger('optimization.model_builder')


class ModelBuilder:
    """
    Wires a hypothesis graph and its weight layout into an OptimizationModel.

    Registering a hypothesis assigns optimizer ids to its variables, so a
    graph can only be built once. The graph's state machine enforces this.
    """

    def __init__(self, graph: HypothesisGraph, weights: Optional[Sequence[float]] = None):
        """
        Initialize builder.

        Args:
            graph: Graph in EMPTY state.
            weights: Weight vector of length layout.num_weights. Zeros if None.
        """
        self.graph = graph
        self.layout = WeightLayout.from_graph(graph)

        if weights is None:
            weights = np.zeros(self.layout.num_weights)
        weights = np.asarray(weights, dtype=float).reshape(-1)
        if weights.size != self.layout.num_weights:
            raise ValueError(
                f"Weight vector has {weights.size} entries but the graph needs "
                f"{self.layout.num_weights}"
            )
        self.weights = weights
        self.weight_ids: Dict[FeatureCategory, List[int]] = {}

    def build(self) -> OptimizationModel:
        """
        Register links, then segmentation hypotheses, then exclusions.

        Links go first because the conservation constraints of every
        segmentation hypothesis reference its link variables.

        Exclusion members are resolved before any variable is registered, so
        a graph that fails to build stays EMPTY without optimizer ids.

        Returns:
            The model, also stored as graph.model.
        """
        self.graph.check_transition(GraphState.BUILT)
        for exclusion in self.graph.exclusion_constraints():
            exclusion.members(self.graph.segmentations)

        logger.info("Initializing optimization model...")
        self.weight_ids = self.layout.weight_ids()
        model = OptimizationModel(self.layout.num_weights, self.weights)

        link_ids = self.weight_ids[FeatureCategory.LINK]
        for link in self.graph.linking_hypotheses():
            link.add_to_model(model, link_ids)

        for hyp in self.graph.segmentation_hypotheses():
            hyp.add_to_model(
                model,
                self.graph.incoming_variables(hyp.id),
                self.graph.outgoing_variables(hyp.id),
                self.weight_ids
            )

        for exclusion in self.graph.exclusion_constraints():
            exclusion.add_to_model(model, self.graph.segmentations)

        self.graph.model = model
        self.graph.transition(GraphState.BUILT)
        logger.info(
            f"Built model with {model.num_variables} variables, {len(model.factors)} factors, "
            f"{len(model.constraints)} constraints and {model.num_weights} weights "
            f"({', '.join(f'{c.value}: {self.layout.num_features(c)}' for c in CATEGORY_ORDER)} features)"
        )
        return model


def build_model(graph: HypothesisGraph, weights: Optional[Sequence[float]] = None) -> OptimizationModel:
    """Build the optimization model of a graph (see ModelBuilder)."""
    return ModelBuilder(graph, weights).build()
