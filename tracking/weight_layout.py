"""
Weight layout: feature counts per category and the shared weight index ranges.

Weights are laid out as a contiguous concatenation of one range per feature
category in the order link, detection, division, appearance, disappearance.
Every range holds an "off" half followed by an "on" half, both as long as the
category's feature vectors. The order is part of the weight file format.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from .errors import ConsistencyError


class FeatureCategory(Enum):
    """Feature categories in weight-layout order."""

    LINK = 'Link'
    DETECTION = 'Detection'
    DIVISION = 'Division'
    APPEARANCE = 'Appearance'
    DISAPPEARANCE = 'Disappearance'

    @property
    def plural(self) -> str:
        return f"{self.value}s"


CATEGORY_ORDER = [
    FeatureCategory.LINK,
    FeatureCategory.DETECTION,
    FeatureCategory.DIVISION,
    FeatureCategory.APPEARANCE,
    FeatureCategory.DISAPPEARANCE,
]

NUM_STATES = 2


@dataclass(frozen=True)
class WeightLayout:
    """Number of features per category, as found in a hypothesis graph."""

    num_link_features: int = 0
    num_detection_features: int = 0
    num_division_features: int = 0
    num_appearance_features: int = 0
    num_disappearance_features: int = 0

    @classmethod
    def from_graph(cls, graph) -> 'WeightLayout':
        """
        Scan all hypotheses of a graph and determine the feature counts.

        Does not modify the graph, so it can be called any number of times.

        Args:
            graph: HypothesisGraph to scan.

        Returns:
            WeightLayout for this graph.

        Raises:
            ConsistencyError: If two variables of one category have
                different numbers of features.
        """
        counts: Dict[FeatureCategory, int] = {}

        def check(category: FeatureCategory, variable):
            if variable is None:
                return
            previous = counts.get(category)
            if previous is None:
                counts[category] = variable.num_features
            elif previous != variable.num_features:
                raise ConsistencyError(
                    f"{category.plural} do not have the same number of features! "
                    f"(found {previous} and {variable.num_features})"
                )

        for link in graph.linking_hypotheses():
            check(FeatureCategory.LINK, link.link)

        for hyp in graph.segmentation_hypotheses():
            check(FeatureCategory.DETECTION, hyp.detection)
            check(FeatureCategory.DIVISION, hyp.division)
            check(FeatureCategory.APPEARANCE, hyp.appearance)
            check(FeatureCategory.DISAPPEARANCE, hyp.disappearance)

        return cls(
            num_link_features=counts.get(FeatureCategory.LINK, 0),
            num_detection_features=counts.get(FeatureCategory.DETECTION, 0),
            num_division_features=counts.get(FeatureCategory.DIVISION, 0),
            num_appearance_features=counts.get(FeatureCategory.APPEARANCE, 0),
            num_disappearance_features=counts.get(FeatureCategory.DISAPPEARANCE, 0),
        )

    def num_features(self, category: FeatureCategory) -> int:
        return {
            FeatureCategory.LINK: self.num_link_features,
            FeatureCategory.DETECTION: self.num_detection_features,
            FeatureCategory.DIVISION: self.num_division_features,
            FeatureCategory.APPEARANCE: self.num_appearance_features,
            FeatureCategory.DISAPPEARANCE: self.num_disappearance_features,
        }[category]

    @property
    def num_weights(self) -> int:
        """Total number of weights: one "off" and one "on" weight per feature."""
        return NUM_STATES * sum(self.num_features(c) for c in CATEGORY_ORDER)

    def weight_ids(self) -> Dict[FeatureCategory, List[int]]:
        """
        Assign contiguous global weight indices to every category.

        Returns:
            Dict mapping each category to its 2 * num_features indices,
            "off" half first.
        """
        ranges = {}
        offset = 0
        for category in CATEGORY_ORDER:
            size = NUM_STATES * self.num_features(category)
            ranges[category] = list(range(offset, offset + size))
            offset += size
        return ranges

    def descriptions(self) -> List[str]:
        """
        Human readable description of every weight, in weight order.

        Returns:
            List of strings like "Detection = 1 - feature 0".
        """
        descriptions = []
        for category in CATEGORY_ORDER:
            n = self.num_features(category)
            for state in range(NUM_STATES):
                for f in range(n):
                    descriptions.append(f"{category.value} = {state} - feature {f}")
        return descriptions

    def to_dict(self) -> Dict[str, int]:
        return {c.value: self.num_features(c) for c in CATEGORY_ORDER}
