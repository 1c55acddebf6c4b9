"""
Tests for ground truth reconstruction and result export.
"""

import unittest
import numpy as np

from evaluation.solution_codec import SolutionCodec, parse_link_annotations
from optimization.model_builder import build_model
from tracking.errors import (
    HypothesisReferenceError,
    IllegalStateError,
    InconsistentAnnotationError,
    InvariantViolationError
)
from tracking.hypothesis_graph import HypothesisGraph


def two_node_spec(first_appears: bool = True, second_disappears: bool = True):
    first = {'id': 1, 'features': [0.1]}
    if first_appears:
        first['appearanceFeatures'] = [0.4]
    second = {'id': 2, 'features': [0.2], 'appearanceFeatures': [0.5]}
    if second_disappears:
        second['disappearanceFeatures'] = [0.6]
    return {
        'segmentationHypotheses': [first, second],
        'linkingHypotheses': [{'src': 1, 'dest': 2, 'features': [0.3]}]
    }


def division_spec(with_division: bool = True, num_children: int = 2):
    parent = {'id': 1, 'features': [0.1], 'appearanceFeatures': [0.4]}
    if with_division:
        parent['divisionFeatures'] = [0.7]
    children = [
        {'id': i, 'features': [0.2], 'disappearanceFeatures': [0.6]}
        for i in range(2, 2 + num_children)
    ]
    return {
        'segmentationHypotheses': [parent] + children,
        'linkingHypotheses': [
            {'src': 1, 'dest': child['id'], 'features': [0.3]} for child in children
        ]
    }


def link_results(*links, value=True):
    return {'linkResults': [{'src': s, 'dest': d, 'value': value} for s, d in links]}


def make_codec(spec):
    graph = HypothesisGraph.from_spec(spec)
    build_model(graph)
    return graph, SolutionCodec(graph)


class TestParseLinkAnnotations(unittest.TestCase):

    def test_parse(self):
        spec = {'linkResults': [
            {'src': 1, 'dest': 2, 'value': True},
            {'src': 2, 'dest': 3, 'value': False},
            {'src': 3, 'dest': 4},
        ]}

        self.assertEqual(
            parse_link_annotations(spec),
            [(1, 2, True), (2, 3, False), (3, 4, False)]
        )

    def test_missing_endpoint(self):
        with self.assertRaises(KeyError):
            parse_link_annotations({'linkResults': [{'src': 1, 'value': True}]})

    def test_empty(self):
        self.assertEqual(parse_link_annotations({}), [])


class TestGroundTruthReconstruction(unittest.TestCase):
    """Test expanding link annotations into full solutions."""

    def test_requires_built_graph(self):
        graph = HypothesisGraph.from_spec(two_node_spec())

        with self.assertRaises(IllegalStateError):
            SolutionCodec(graph)

    def test_track_of_two(self):
        """Test that both endpoints, the appearance and the disappearance are set."""
        graph, codec = make_codec(two_node_spec())

        solution = codec.reconstruct_ground_truth(link_results((1, 2)))

        hyp1, hyp2 = graph.segmentation(1), graph.segmentation(2)
        self.assertTrue(graph.link(1, 2).is_active(solution))
        self.assertTrue(hyp1.detection.is_active(solution))
        self.assertTrue(hyp1.appearance.is_active(solution))
        self.assertTrue(hyp2.detection.is_active(solution))
        self.assertFalse(hyp2.appearance.is_active(solution))
        self.assertTrue(hyp2.disappearance.is_active(solution))
        np.testing.assert_array_equal(solution, [1, 1, 1, 1, 0, 1])

    def test_missing_appearance_names_hypothesis(self):
        """Test a track start without appearance features."""
        graph, codec = make_codec(two_node_spec(first_appears=False, second_disappears=False))

        with self.assertRaises(InvariantViolationError) as ctx:
            codec.reconstruct_ground_truth(link_results((1, 2)))

        self.assertEqual(ctx.exception.hypothesis_id, 1)
        self.assertIn('1', str(ctx.exception))
        self.assertIn('appear', str(ctx.exception))

    def test_missing_disappearance(self):
        """Test a track end without disappearance features."""
        graph, codec = make_codec(two_node_spec(second_disappears=False))

        with self.assertRaises(InvariantViolationError) as ctx:
            codec.reconstruct_ground_truth(link_results((1, 2)))

        self.assertEqual(ctx.exception.hypothesis_id, 2)
        self.assertIn('disappear', str(ctx.exception))

    def test_division(self):
        """Test that a second outgoing link of one source marks a division."""
        graph, codec = make_codec(division_spec())

        solution = codec.reconstruct_ground_truth(link_results((1, 2), (1, 3)))

        parent = graph.segmentation(1)
        self.assertTrue(parent.detection.is_active(solution))
        self.assertTrue(parent.division.is_active(solution))
        self.assertTrue(parent.appearance.is_active(solution))
        for child_id in (2, 3):
            child = graph.segmentation(child_id)
            self.assertTrue(child.detection.is_active(solution))
            self.assertTrue(child.disappearance.is_active(solution))
        self.assertEqual(graph.model.violated_constraints(solution), [])

    def test_single_child_is_no_division(self):
        graph, codec = make_codec(division_spec())

        solution = codec.reconstruct_ground_truth(link_results((1, 2)))

        self.assertFalse(graph.segmentation(1).division.is_active(solution))
        self.assertFalse(graph.segmentation(3).detection.is_active(solution))

    def test_division_without_division_variable(self):
        graph, codec = make_codec(division_spec(with_division=False))

        with self.assertRaises(InvariantViolationError) as ctx:
            codec.reconstruct_ground_truth(link_results((1, 2), (1, 3)))
        self.assertEqual(ctx.exception.hypothesis_id, 1)

    def test_source_used_three_times(self):
        """Test that a source can be used by at most two links."""
        graph, codec = make_codec(division_spec(num_children=3))

        with self.assertRaises(InconsistentAnnotationError):
            codec.reconstruct_ground_truth(link_results((1, 2), (1, 3), (1, 4)))

    def test_link_annotated_twice(self):
        graph, codec = make_codec(division_spec())

        with self.assertRaises(InconsistentAnnotationError):
            codec.reconstruct_ground_truth(link_results((1, 2), (1, 2)))

    def test_unknown_link(self):
        graph, codec = make_codec(two_node_spec())

        with self.assertRaises(HypothesisReferenceError) as ctx:
            codec.reconstruct_ground_truth(link_results((2, 1)))
        self.assertIn('2 to 1', str(ctx.exception))

    def test_false_annotations_ignored(self):
        """Test that only true links contribute."""
        graph, codec = make_codec(two_node_spec())

        solution = codec.reconstruct_ground_truth(link_results((1, 2), value=False))

        np.testing.assert_array_equal(solution, np.zeros(6))

    def test_deterministic(self):
        """Test that repeated reconstruction gives identical solutions."""
        graph, codec = make_codec(division_spec())
        gt = link_results((1, 3), (1, 2))

        first = codec.reconstruct_ground_truth(gt)
        second = codec.reconstruct_ground_truth(gt)

        np.testing.assert_array_equal(first, second)


class TestExport(unittest.TestCase):
    """Test exporting solutions as link results."""

    def test_export_reconstructed_ground_truth(self):
        graph, codec = make_codec(two_node_spec())
        gt = link_results((1, 2))

        solution = codec.reconstruct_ground_truth(gt)

        self.assertEqual(codec.export(solution), gt)

    def test_export_lists_every_link(self):
        graph, codec = make_codec(division_spec())

        solution = codec.reconstruct_ground_truth(link_results((1, 3)))
        result = codec.export(solution)

        self.assertEqual(result, {'linkResults': [
            {'src': 1, 'dest': 2, 'value': False},
            {'src': 1, 'dest': 3, 'value': True},
        ]})

    def test_export_wrong_length(self):
        graph, codec = make_codec(two_node_spec())

        with self.assertRaises(ValueError):
            codec.export([1, 0])


if __name__ == '__main__':
    unittest.main()
