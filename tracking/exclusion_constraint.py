"""
Exclusion constraints: at most one of a set of detections may be active.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List

from .errors import HypothesisReferenceError


@dataclass
class ExclusionConstraint:
    """Set of segmentation hypothesis ids that exclude each other."""

    member_ids: FrozenSet[int] = field(default_factory=frozenset)

    def __post_init__(self):
        self.member_ids = frozenset(int(i) for i in self.member_ids)

    @classmethod
    def from_list(cls, ids: Iterable[int]) -> 'ExclusionConstraint':
        return cls(member_ids=frozenset(ids))

    def members(self, segmentations: Dict) -> List:
        """
        Resolve the member hypotheses in ascending id order.

        Raises:
            HypothesisReferenceError: If a member id is unknown.
        """
        members = []
        for hyp_id in sorted(self.member_ids):
            if hyp_id not in segmentations:
                raise HypothesisReferenceError(
                    f"Exclusion constraint refers to unknown segmentation hypothesis {hyp_id}"
                )
            members.append(segmentations[hyp_id])
        return members

    def add_to_model(self, model, segmentations: Dict):
        """
        Add "sum of member detections <= 1" to the model.

        Args:
            model: OptimizationModel with registered detection variables.
            segmentations: Dict of segmentation hypotheses by id.
        """
        ids = [hyp.detection.opt_id for hyp in self.members(segmentations)]
        model.add_constraint(ids, [1.0] * len(ids), None, 1.0)

    def num_active(self, solution, segmentations: Dict) -> int:
        return sum(
            1 for hyp in self.members(segmentations)
            if hyp.detection.is_active(solution)
        )

    def verify_solution(self, solution, segmentations: Dict) -> bool:
        """Check that at most one member detection is active."""
        return self.num_active(solution, segmentations) <= 1

    def to_list(self) -> List[int]:
        return sorted(self.member_ids)

    def __repr__(self) -> str:
        return f"ExclusionConstraint({self.to_list()})"
