"""
Segmentation and linking hypotheses.

A segmentation hypothesis is one object candidate. It always has a detection
variable and optionally division, appearance and disappearance variables.
A linking hypothesis is a candidate transition between two segmentation
hypotheses, referenced by id only.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .variable import Variable
from .weight_layout import FeatureCategory


LinkKey = Tuple[int, int]


def count_active(variables: Sequence[Variable], solution) -> int:
    """Number of variables that are active in a solution."""
    return sum(1 for v in variables if v.is_active(solution))


@dataclass
class SegmentationHypothesis:
    """
    One trackable object candidate with its four decision variables.

    Missing optional variables mean the corresponding event (division,
    appearance, disappearance) is not allowed for this hypothesis.
    """

    id: int
    detection: Variable = field(default_factory=Variable)
    division: Optional[Variable] = None
    appearance: Optional[Variable] = None
    disappearance: Optional[Variable] = None

    @classmethod
    def from_dict(cls, entry: Dict) -> 'SegmentationHypothesis':
        """
        Create from a graph specification entry.

        Expects "id" and "features"; "divisionFeatures", "appearanceFeatures"
        and "disappearanceFeatures" are optional.
        """
        for key in ('id', 'features'):
            if key not in entry:
                raise KeyError(f"Segmentation hypothesis entry is missing '{key}'")
        return cls(
            id=int(entry['id']),
            detection=Variable(features=entry['features']),
            division=Variable.from_features(entry.get('divisionFeatures')),
            appearance=Variable.from_features(entry.get('appearanceFeatures')),
            disappearance=Variable.from_features(entry.get('disappearanceFeatures')),
        )

    def to_dict(self) -> Dict:
        entry = {'id': self.id, 'features': self.detection.to_list()}
        if self.division is not None:
            entry['divisionFeatures'] = self.division.to_list()
        if self.appearance is not None:
            entry['appearanceFeatures'] = self.appearance.to_list()
        if self.disappearance is not None:
            entry['disappearanceFeatures'] = self.disappearance.to_list()
        return entry

    def variables(self) -> Dict[FeatureCategory, Optional[Variable]]:
        return {
            FeatureCategory.DETECTION: self.detection,
            FeatureCategory.DIVISION: self.division,
            FeatureCategory.APPEARANCE: self.appearance,
            FeatureCategory.DISAPPEARANCE: self.disappearance,
        }

    def add_to_model(
        self,
        model,
        incoming: Sequence[Variable],
        outgoing: Sequence[Variable],
        weight_ids: Dict[FeatureCategory, List[int]]
    ):
        """
        Register all present variables and the flow conservation constraints.

        Link variables must already be registered.

        Args:
            model: OptimizationModel.
            incoming: Link variables ending at this hypothesis.
            outgoing: Link variables starting at this hypothesis.
            weight_ids: Weight index range per category.
        """
        for category, variable in self.variables().items():
            if variable is not None:
                variable.add_to_model(model, weight_ids[category])

        det = self.detection.opt_id

        # incoming links + appearance = detection
        ids = [link.opt_id for link in incoming]
        coefficients = [1.0] * len(ids)
        if self.appearance is not None:
            ids.append(self.appearance.opt_id)
            coefficients.append(1.0)
        model.add_constraint(ids + [det], coefficients + [-1.0], 0.0, 0.0)

        # outgoing links + disappearance = detection + division
        ids = [link.opt_id for link in outgoing]
        coefficients = [1.0] * len(ids)
        if self.disappearance is not None:
            ids.append(self.disappearance.opt_id)
            coefficients.append(1.0)
        ids.append(det)
        coefficients.append(-1.0)
        if self.division is not None:
            ids.append(self.division.opt_id)
            coefficients.append(-1.0)
        model.add_constraint(ids, coefficients, 0.0, 0.0)

        if self.division is not None:
            model.add_constraint([self.division.opt_id, det], [1.0, -1.0], None, 0.0)

    def conservation_violations(
        self,
        solution,
        incoming: Sequence[Variable],
        outgoing: Sequence[Variable]
    ) -> List[str]:
        """
        Evaluate the flow conservation constraints against a solution.

        Returns:
            Description of every violated constraint (empty if none).
        """
        def state(variable: Optional[Variable]) -> int:
            return 1 if variable is not None and variable.is_active(solution) else 0

        det = state(self.detection)
        div = state(self.division)
        num_in = count_active(incoming, solution)
        num_out = count_active(outgoing, solution)

        violations = []
        if num_in + state(self.appearance) != det:
            violations.append(
                f"Segmentation Hypothesis {self.id}: {num_in} active incoming links and "
                f"appearance={state(self.appearance)} do not match detection={det}"
            )
        if num_out + state(self.disappearance) != det + div:
            violations.append(
                f"Segmentation Hypothesis {self.id}: {num_out} active outgoing links and "
                f"disappearance={state(self.disappearance)} do not match "
                f"detection={det} + division={div}"
            )
        if div > det:
            violations.append(
                f"Segmentation Hypothesis {self.id}: division active without detection"
            )
        return violations

    def verify_solution(self, solution, incoming, outgoing) -> bool:
        return not self.conservation_violations(solution, incoming, outgoing)


@dataclass
class LinkingHypothesis:
    """Candidate transition from one segmentation hypothesis to another."""

    source_id: int
    dest_id: int
    link: Variable = field(default_factory=Variable)

    @classmethod
    def from_dict(cls, entry: Dict) -> 'LinkingHypothesis':
        """Create from a graph specification entry with "src", "dest" and "features"."""
        for key in ('src', 'dest', 'features'):
            if key not in entry:
                raise KeyError(f"Linking hypothesis entry is missing '{key}'")
        return cls(
            source_id=int(entry['src']),
            dest_id=int(entry['dest']),
            link=Variable(features=entry['features']),
        )

    @property
    def key(self) -> LinkKey:
        return (self.source_id, self.dest_id)

    def add_to_model(self, model, weight_ids: List[int]) -> int:
        return self.link.add_to_model(model, weight_ids)

    def is_active(self, solution) -> bool:
        return self.link.is_active(solution)

    def to_dict(self) -> Dict:
        return {
            'src': self.source_id,
            'dest': self.dest_id,
            'features': self.link.to_list()
        }

    def to_result(self, value: bool) -> Dict:
        """Result entry with this link's activation state."""
        return {'src': self.source_id, 'dest': self.dest_id, 'value': bool(value)}

    def __repr__(self) -> str:
        return f"LinkingHypothesis({self.source_id} -> {self.dest_id}, opt_id={self.link.opt_id})"
