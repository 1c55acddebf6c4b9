"""
Hypothesis graph - owns all hypotheses and constraints of one tracking problem.
"""

from enum import Enum
from typing import Dict, Iterator, List, Optional

from .errors import HypothesisReferenceError, IllegalStateError
from .exclusion_constraint import ExclusionConstraint
from .hypotheses import LinkKey, LinkingHypothesis, SegmentationHypothesis
from .variable import Variable

SEGMENTATIONS_KEY = 'segmentationHypotheses'
LINKS_KEY = 'linkingHypotheses'
EXCLUSIONS_KEY = 'exclusions'
LINK_RESULTS_KEY = 'linkResults'
WEIGHTS_KEY = 'weights'
WEIGHT_DESCRIPTIONS_KEY = 'weightDescriptions'


class GraphState(Enum):
    """Lifecycle of a graph: it is built once and solved or learned on once."""

    EMPTY = 'empty'
    BUILT = 'built'
    SOLVED = 'solved'
    LEARNED = 'learned'


_TRANSITIONS = {
    GraphState.EMPTY: {GraphState.BUILT},
    GraphState.BUILT: {GraphState.SOLVED, GraphState.LEARNED},
    GraphState.SOLVED: set(),
    GraphState.LEARNED: set(),
}


class HypothesisGraph:
    """
    Segmentation hypotheses by id, linking hypotheses by (src, dest) and
    exclusion constraints.

    Links refer to their endpoints by id; ``source``/``dest`` resolve them.
    Hypotheses can only be added while the graph is EMPTY, i.e. before a
    model was built from it.
    """

    def __init__(self):
        self._segmentations: Dict[int, SegmentationHypothesis] = {}
        self._links: Dict[LinkKey, LinkingHypothesis] = {}
        self._incoming: Dict[int, List[LinkKey]] = {}
        self._outgoing: Dict[int, List[LinkKey]] = {}
        self._exclusions: List[ExclusionConstraint] = []

        self.state = GraphState.EMPTY
        self.model = None
        """OptimizationModel, set once the graph is built."""

    @classmethod
    def from_spec(cls, spec: Dict) -> 'HypothesisGraph':
        """
        Populate a graph from a graph specification dictionary.

        Args:
            spec: Dict with "segmentationHypotheses", "linkingHypotheses"
                  and "exclusions" lists (each may be missing).

        Returns:
            HypothesisGraph in EMPTY state.
        """
        graph = cls()
        for entry in spec.get(SEGMENTATIONS_KEY, []):
            graph.add_segmentation(SegmentationHypothesis.from_dict(entry))
        for entry in spec.get(LINKS_KEY, []):
            graph.add_link(LinkingHypothesis.from_dict(entry))
        for ids in spec.get(EXCLUSIONS_KEY, []):
            graph.add_exclusion(ExclusionConstraint.from_list(ids))
        return graph

    def to_spec(self) -> Dict:
        return {
            SEGMENTATIONS_KEY: [h.to_dict() for h in self.segmentation_hypotheses()],
            LINKS_KEY: [l.to_dict() for l in self.linking_hypotheses()],
            EXCLUSIONS_KEY: [e.to_list() for e in self._exclusions],
        }

    # ------------------------------------------------------------------
    # Population

    def _require_mutable(self):
        if self.state is not GraphState.EMPTY:
            raise IllegalStateError(
                f"Cannot modify a hypothesis graph in state '{self.state.value}'"
            )

    def add_segmentation(self, hypothesis: SegmentationHypothesis):
        self._require_mutable()
        if hypothesis.id in self._segmentations:
            raise ValueError(f"Duplicate segmentation hypothesis id {hypothesis.id}")
        self._segmentations[hypothesis.id] = hypothesis
        self._incoming.setdefault(hypothesis.id, [])
        self._outgoing.setdefault(hypothesis.id, [])

    def add_link(self, link: LinkingHypothesis):
        self._require_mutable()
        for hyp_id in link.key:
            if hyp_id not in self._segmentations:
                raise HypothesisReferenceError(
                    f"Link {link.source_id} -> {link.dest_id} refers to unknown "
                    f"segmentation hypothesis {hyp_id}"
                )
        if link.key in self._links:
            raise ValueError(f"Duplicate linking hypothesis {link.source_id} -> {link.dest_id}")
        self._links[link.key] = link
        self._outgoing[link.source_id].append(link.key)
        self._incoming[link.dest_id].append(link.key)

    def add_exclusion(self, constraint: ExclusionConstraint):
        self._require_mutable()
        for hyp_id in constraint.member_ids:
            if hyp_id not in self._segmentations:
                raise HypothesisReferenceError(
                    f"Exclusion constraint refers to unknown segmentation hypothesis {hyp_id}"
                )
        self._exclusions.append(constraint)

    # ------------------------------------------------------------------
    # Lookup

    def segmentation(self, hyp_id: int) -> SegmentationHypothesis:
        try:
            return self._segmentations[hyp_id]
        except KeyError:
            raise HypothesisReferenceError(
                f"Unknown segmentation hypothesis {hyp_id}"
            ) from None

    def has_segmentation(self, hyp_id: int) -> bool:
        return hyp_id in self._segmentations

    def get_link(self, source_id: int, dest_id: int) -> Optional[LinkingHypothesis]:
        return self._links.get((source_id, dest_id))

    def link(self, source_id: int, dest_id: int) -> LinkingHypothesis:
        link = self.get_link(source_id, dest_id)
        if link is None:
            raise HypothesisReferenceError(
                f"Cannot find link {source_id} to {dest_id}"
            )
        return link

    def source(self, link: LinkingHypothesis) -> SegmentationHypothesis:
        return self.segmentation(link.source_id)

    def dest(self, link: LinkingHypothesis) -> SegmentationHypothesis:
        return self.segmentation(link.dest_id)

    def incoming_links(self, hyp_id: int) -> List[LinkingHypothesis]:
        return [self._links[key] for key in self._incoming.get(hyp_id, [])]

    def outgoing_links(self, hyp_id: int) -> List[LinkingHypothesis]:
        return [self._links[key] for key in self._outgoing.get(hyp_id, [])]

    def incoming_variables(self, hyp_id: int) -> List[Variable]:
        return [l.link for l in self.incoming_links(hyp_id)]

    def outgoing_variables(self, hyp_id: int) -> List[Variable]:
        return [l.link for l in self.outgoing_links(hyp_id)]

    def segmentation_hypotheses(self) -> Iterator[SegmentationHypothesis]:
        """Segmentation hypotheses in ascending id order."""
        for hyp_id in sorted(self._segmentations):
            yield self._segmentations[hyp_id]

    def linking_hypotheses(self) -> Iterator[LinkingHypothesis]:
        """Linking hypotheses in ascending (src, dest) order."""
        for key in sorted(self._links):
            yield self._links[key]

    def exclusion_constraints(self) -> List[ExclusionConstraint]:
        return list(self._exclusions)

    @property
    def segmentations(self) -> Dict[int, SegmentationHypothesis]:
        return self._segmentations

    @property
    def num_segmentations(self) -> int:
        return len(self._segmentations)

    @property
    def num_links(self) -> int:
        return len(self._links)

    @property
    def num_exclusions(self) -> int:
        return len(self._exclusions)

    # ------------------------------------------------------------------
    # Lifecycle

    def transition(self, target: GraphState):
        """
        Move to another lifecycle state.

        Raises:
            IllegalStateError: If the transition is not allowed.
        """
        self.check_transition(target)
        self.state = target

    def check_transition(self, target: GraphState):
        if target not in _TRANSITIONS[self.state]:
            raise IllegalStateError(
                f"Illegal graph state transition: {self.state.value} -> {target.value}. "
                "A hypothesis graph can only be built once and solved or learned on once; "
                "create a new graph to run again."
            )

    def is_built(self) -> bool:
        return self.state is not GraphState.EMPTY

    def require_built(self):
        if not self.is_built() or self.model is None:
            raise IllegalStateError("The hypothesis graph has not been built into a model yet")

    # ------------------------------------------------------------------
    # Reporting

    def get_statistics(self) -> Dict:
        """
        Get graph statistics.

        Returns:
            Dict with counts of hypotheses, constraints and optional variables.
        """
        hyps = list(self.segmentation_hypotheses())
        return {
            'num_segmentations': len(hyps),
            'num_links': self.num_links,
            'num_exclusions': self.num_exclusions,
            'num_divisions': sum(1 for h in hyps if h.division is not None),
            'num_appearances': sum(1 for h in hyps if h.appearance is not None),
            'num_disappearances': sum(1 for h in hyps if h.disappearance is not None),
            'state': self.state.value,
            'num_variables': self.model.num_variables if self.model is not None else 0
        }

    def summarize(self) -> str:
        """
        Get human-readable summary.

        Returns:
            Summary string.
        """
        stats = self.get_statistics()

        lines = [
            "Hypothesis Graph Summary",
            "=" * 50,
            f"State: {stats['state']}",
            f"Segmentation hypotheses: {stats['num_segmentations']}",
            f"  with division: {stats['num_divisions']}",
            f"  with appearance: {stats['num_appearances']}",
            f"  with disappearance: {stats['num_disappearances']}",
            f"Linking hypotheses: {stats['num_links']}",
            f"Exclusion constraints: {stats['num_exclusions']}",
            f"Optimizer variables: {stats['num_variables']}",
        ]

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"HypothesisGraph(segmentations={self.num_segmentations}, "
            f"links={self.num_links}, exclusions={self.num_exclusions}, "
            f"state={self.state.value})"
        )
