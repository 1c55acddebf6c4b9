"""
Solution verification against exclusion and flow conservation constraints.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from tracking.hypothesis_graph import HypothesisGraph
from utils import get_logger

logger = get_logger('evaluation.verifier')


@dataclass
class VerificationReport:
    """Outcome of a verification run."""

    valid: bool = True
    violations: List[str] = field(default_factory=list)

    def add(self, message: str):
        self.valid = False
        self.violations.append(message)
        logger.warning(f"\t{message}")

    def __bool__(self) -> bool:
        return self.valid


class Verifier:
    """
    Checks a solution of a built graph.

    Violations are collected and logged; checking never stops early.
    Per segmentation hypothesis the verifier evaluates the same constraints
    the model enforces:

        incoming links + appearance = detection
        outgoing links + disappearance = detection + division
        division <= detection
    """

    def __init__(self, graph: HypothesisGraph):
        graph.require_built()
        self.graph = graph

    def verify(self, solution) -> VerificationReport:
        """
        Verify a solution.

        Args:
            solution: One entry per model variable.

        Returns:
            VerificationReport.

        Raises:
            ValueError: If the solution has the wrong length.
        """
        logger.info("Checking solution...")
        solution = self.graph.model.check_solution(solution)
        report = VerificationReport()

        non_binary = np.flatnonzero((solution != 0) & (solution != 1))
        for var_id in non_binary:
            report.add(f"Variable {var_id} has non-binary value {solution[var_id]}")

        segmentations = self.graph.segmentations
        for exclusion in self.graph.exclusion_constraints():
            if not exclusion.verify_solution(solution, segmentations):
                report.add(
                    f"Found violated exclusion constraint {exclusion.to_list()}: "
                    f"{exclusion.num_active(solution, segmentations)} detections active"
                )

        for hyp in self.graph.segmentation_hypotheses():
            violations = hyp.conservation_violations(
                solution,
                self.graph.incoming_variables(hyp.id),
                self.graph.outgoing_variables(hyp.id)
            )
            for message in violations:
                report.add(f"Found violated flow conservation constraint - {message}")

        if report.valid:
            logger.info("Solution is valid")
        else:
            logger.warning(f"Solution violates {len(report.violations)} constraints")
        return report
