"""
Tests for OptimizationModel and ModelBuilder.
"""

import unittest
import numpy as np

from optimization.model import OptimizationModel
from optimization.model_builder import ModelBuilder, build_model
from tracking.errors import HypothesisReferenceError, IllegalStateError
from tracking.hypothesis_graph import GraphState, HypothesisGraph
from tracking.weight_layout import FeatureCategory


# link (0) | det1 (1) app1 (2) | det2 (3) app2 (4) dis2 (5)
GRAPH_SPEC = {
    'segmentationHypotheses': [
        {'id': 1, 'features': [0.1], 'appearanceFeatures': [0.4]},
        {'id': 2, 'features': [0.2], 'appearanceFeatures': [0.5], 'disappearanceFeatures': [0.6]},
    ],
    'linkingHypotheses': [
        {'src': 1, 'dest': 2, 'features': [0.3]},
    ]
}

GROUND_TRUTH = np.array([1, 1, 1, 1, 0, 1])


class TestModelBuilder(unittest.TestCase):
    """Test building the optimization model from a graph."""

    def setUp(self):
        self.graph = HypothesisGraph.from_spec(GRAPH_SPEC)

    def test_variable_ids(self):
        """Test that links are registered before segmentation hypotheses."""
        model = build_model(self.graph)

        self.assertEqual(model.num_variables, 6)
        self.assertEqual(self.graph.link(1, 2).link.opt_id, 0)

        hyp1 = self.graph.segmentation(1)
        self.assertEqual(hyp1.detection.opt_id, 1)
        self.assertEqual(hyp1.appearance.opt_id, 2)
        self.assertIsNone(hyp1.disappearance)

        hyp2 = self.graph.segmentation(2)
        self.assertEqual(hyp2.detection.opt_id, 3)
        self.assertEqual(hyp2.appearance.opt_id, 4)
        self.assertEqual(hyp2.disappearance.opt_id, 5)

    def test_model_attached_to_graph(self):
        model = build_model(self.graph)

        self.assertIs(self.graph.model, model)
        self.assertIs(self.graph.state, GraphState.BUILT)

    def test_weight_ids_assigned(self):
        """Test weight id ranges of the builder."""
        builder = ModelBuilder(self.graph)
        builder.build()

        self.assertEqual(builder.weight_ids[FeatureCategory.LINK], [0, 1])
        self.assertEqual(builder.weight_ids[FeatureCategory.DETECTION], [2, 3])
        self.assertEqual(builder.weight_ids[FeatureCategory.DIVISION], [])
        self.assertEqual(builder.weight_ids[FeatureCategory.APPEARANCE], [4, 5])
        self.assertEqual(builder.weight_ids[FeatureCategory.DISAPPEARANCE], [6, 7])

    def test_factors_and_constraints(self):
        model = build_model(self.graph)

        self.assertEqual(len(model.factors), 6)
        # incoming + outgoing per segmentation hypothesis
        self.assertEqual(len(model.constraints), 4)

    def test_exclusion_constraints_added(self):
        spec = dict(GRAPH_SPEC, exclusions=[[1, 2]])
        model = build_model(HypothesisGraph.from_spec(spec))

        self.assertEqual(len(model.constraints), 5)
        self.assertEqual(model.constraints[-1].variables, (1, 3))

    def test_build_twice_fails(self):
        """Test that a graph can only be built once."""
        build_model(self.graph)

        with self.assertRaises(IllegalStateError):
            build_model(self.graph)
        # ids were not allocated a second time
        self.assertEqual(self.graph.model.num_variables, 6)

    def test_wrong_weight_count(self):
        """Test that the weight vector must match the layout."""
        with self.assertRaises(ValueError):
            build_model(self.graph, [0.0, 1.0, 2.0])
        self.assertIs(self.graph.state, GraphState.EMPTY)

    def test_weights_stored(self):
        model = build_model(self.graph, np.arange(8.0))

        np.testing.assert_allclose(model.weights, np.arange(8.0))

    def test_ground_truth_satisfies_constraints(self):
        model = build_model(self.graph)

        self.assertEqual(model.violated_constraints(GROUND_TRUTH), [])

    def test_empty_graph(self):
        model = build_model(HypothesisGraph())

        self.assertEqual(model.num_variables, 0)
        self.assertEqual(model.num_weights, 0)


class TestOptimizationModel(unittest.TestCase):
    """Test energies of a built model."""

    def setUp(self):
        self.graph = HypothesisGraph.from_spec(GRAPH_SPEC)
        self.weights = np.arange(8.0)
        self.model = build_model(self.graph, self.weights)

    def test_joint_feature(self):
        """Test that features land on the off or on weight of their category."""
        phi = self.model.joint_feature(GROUND_TRUTH)

        np.testing.assert_allclose(phi, [0.0, 0.3, 0.0, 0.3, 0.5, 0.4, 0.0, 0.6])

    def test_energy(self):
        self.assertAlmostEqual(self.model.energy(GROUND_TRUTH), 9.4)
        self.assertAlmostEqual(self.model.energy(GROUND_TRUTH, np.zeros(8)), 0.0)

    def test_linear_costs(self):
        """Test that constant + costs . x reproduces the energy."""
        costs, constant = self.model.linear_costs()

        np.testing.assert_allclose(costs, [0.3, 0.1, 0.4, 0.2, 0.5, 0.6])
        self.assertAlmostEqual(constant, 7.8)
        self.assertAlmostEqual(constant + costs @ GROUND_TRUTH, self.model.energy(GROUND_TRUTH))

    def test_constraint_matrix(self):
        matrix, lower, upper = self.model.constraint_matrix()

        self.assertEqual(matrix.shape, (4, 6))
        np.testing.assert_allclose(lower, 0.0)
        np.testing.assert_allclose(upper, 0.0)
        # incoming constraint of hypothesis 1: appearance - detection = 0
        np.testing.assert_allclose(matrix.toarray()[0], [0, -1, 1, 0, 0, 0])

    def test_wrong_solution_length(self):
        with self.assertRaises(ValueError):
            self.model.joint_feature([1, 0])

    def test_set_weights_checks_length(self):
        with self.assertRaises(ValueError):
            self.model.set_weights([1.0])

    def test_add_factor_checks_weight_ids(self):
        model = OptimizationModel(num_weights=2)
        var = model.add_variable()

        with self.assertRaises(ValueError):
            model.add_factor(var, [1.0], [0, 1, 2, 3])
        with self.assertRaises(ValueError):
            model.add_factor(var, [1.0], [0, 5])

    def test_add_constraint_checks_variables(self):
        model = OptimizationModel(num_weights=0)

        with self.assertRaises(ValueError):
            model.add_constraint([0], [1.0], None, 1.0)


class TestModelBuilderErrors(unittest.TestCase):

    def test_exclusion_refers_to_removed_hypothesis(self):
        """Test that exclusion members are resolved when building."""
        graph = HypothesisGraph.from_spec(GRAPH_SPEC)
        # bypass add_exclusion's check to simulate a stale constraint
        from tracking.exclusion_constraint import ExclusionConstraint
        graph._exclusions.append(ExclusionConstraint.from_list([1, 7]))

        with self.assertRaises(HypothesisReferenceError):
            build_model(graph)

        # nothing was registered and the graph is still unbuilt
        self.assertIs(graph.state, GraphState.EMPTY)
        self.assertIsNone(graph.model)
        self.assertIsNone(graph.segmentation(1).detection.opt_id)
        self.assertIsNone(graph.link(1, 2).link.opt_id)

    def test_infer_after_failed_build(self):
        """Test that a failed build is reported again instead of crashing later."""
        from evaluation import pipeline
        from tracking.exclusion_constraint import ExclusionConstraint
        graph = HypothesisGraph.from_spec(GRAPH_SPEC)
        graph._exclusions.append(ExclusionConstraint.from_list([2, 9]))

        for _ in range(2):
            with self.assertRaises(HypothesisReferenceError):
                pipeline.infer(graph, np.zeros(8))


if __name__ == '__main__':
    unittest.main()
