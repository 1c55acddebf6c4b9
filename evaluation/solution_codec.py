"""
Conversion between solution vectors and link-level result specifications.

Ground truth is given as sparse link annotations. Reconstruction expands it
into a value for every model variable, deriving the detection, division,
appearance and disappearance states that the annotated links imply.
"""

from typing import Dict, List, Tuple

import numpy as np

from tracking.errors import (
    HypothesisReferenceError,
    InconsistentAnnotationError,
    InvariantViolationError
)
from tracking.hypotheses import count_active
from tracking.hypothesis_graph import LINK_RESULTS_KEY, HypothesisGraph
from utils import get_logger

logger = get_logger('evaluation.solution_codec')


def parse_link_annotations(spec: Dict) -> List[Tuple[int, int, bool]]:
    """
    Read (src, dest, value) triples from a result or ground truth spec.

    Args:
        spec: Dict with a "linkResults" list of {"src", "dest", "value"}.

    Returns:
        List of (src, dest, value) in spec order.
    """
    annotations = []
    for entry in spec.get(LINK_RESULTS_KEY, []):
        for key in ('src', 'dest'):
            if key not in entry:
                raise KeyError(f"Link annotation is missing '{key}'")
        annotations.append((int(entry['src']), int(entry['dest']), bool(entry.get('value', False))))
    return annotations


class SolutionCodec:
    """Reads ground truth into solutions and exports solutions as link results."""

    def __init__(self, graph: HypothesisGraph):
        graph.require_built()
        self.graph = graph
        self.model = graph.model

    def reconstruct_ground_truth(self, gt_spec: Dict) -> np.ndarray:
        """
        Expand link annotations into a full solution.

        1. Every true link is set active, as is its source detection. If the
           source was already active it has a second outgoing link, so its
           division is set instead.
        2. The destination detection of every true link is set active, so
           the last node of each track is included.
        3. Active detections without active incoming links appear, those
           without active outgoing links disappear.

        Args:
            gt_spec: Dict with "linkResults"; only entries with value=true
                     are used.

        Returns:
            Solution with one 0/1 entry per model variable.

        Raises:
            HypothesisReferenceError: An annotated link does not exist.
            InconsistentAnnotationError: A link is annotated twice, or a
                source is used by more than two links.
            InvariantViolationError: The ground truth needs a division,
                appearance or disappearance variable that does not exist.
        """
        graph = self.graph
        solution = np.zeros(self.model.num_variables, dtype=int)

        active_links = [(src, dest) for src, dest, value in parse_link_annotations(gt_spec) if value]
        logger.info(f"Ground truth contains {len(active_links)} active link annotations")

        # first set all source nodes active; an already active source divides
        for src, dest in active_links:
            link = graph.get_link(src, dest)
            if link is None:
                raise HypothesisReferenceError(f"Cannot find link to annotate: {src} to {dest}")
            if link.is_active(solution):
                raise InconsistentAnnotationError(f"Link {src} to {dest} is annotated more than once")
            solution[link.link.opt_id] = 1

            source = graph.source(link)
            if not source.detection.is_active(solution):
                solution[source.detection.opt_id] = 1
            elif source.division is None:
                raise InvariantViolationError(
                    f"Segmentation Hypothesis: {source.id} - GT contains dividing variable "
                    "that has no division features set!",
                    hypothesis_id=source.id
                )
            elif source.division.is_active(solution):
                raise InconsistentAnnotationError(
                    f"Segmentation Hypothesis: {source.id} - source node has been used more than twice!"
                )
            else:
                solution[source.division.opt_id] = 1

        # enable target nodes so that the last node of each track is also active
        for src, dest in active_links:
            target = graph.dest(graph.link(src, dest))
            solution[target.detection.opt_id] = 1

        for hyp in graph.segmentation_hypotheses():
            if not hyp.detection.is_active(solution):
                continue

            if count_active(graph.incoming_variables(hyp.id), solution) == 0:
                if hyp.appearance is None:
                    raise InvariantViolationError(
                        f"Segmentation Hypothesis: {hyp.id} - GT contains appearing variable "
                        "that has no appearance features set!",
                        hypothesis_id=hyp.id
                    )
                solution[hyp.appearance.opt_id] = 1

            if count_active(graph.outgoing_variables(hyp.id), solution) == 0:
                if hyp.disappearance is None:
                    raise InvariantViolationError(
                        f"Segmentation Hypothesis: {hyp.id} - GT contains disappearing variable "
                        "that has no disappearance features set!",
                        hypothesis_id=hyp.id
                    )
                solution[hyp.disappearance.opt_id] = 1

        logger.debug(f"found gt solution: {solution.tolist()}")
        return solution

    def export(self, solution) -> Dict:
        """
        Link-level result of a solution.

        Returns:
            {"linkResults": [{"src", "dest", "value"}]} with one entry per link.
        """
        solution = self.model.check_solution(solution)
        return {
            LINK_RESULTS_KEY: [
                link.to_result(link.is_active(solution))
                for link in self.graph.linking_hypotheses()
            ]
        }
