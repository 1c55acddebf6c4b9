"""
Binary decision variable with an attached feature vector.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np


@dataclass
class Variable:
    """
    One binary decision of the tracking model.

    The variable gets its optimizer id when it is registered with an
    OptimizationModel; before that ``opt_id`` is None.
    """

    features: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Feature vector, shared by the "off" and "on" weight halves."""

    opt_id: Optional[int] = None
    """Index of this variable in the optimization model and in solutions."""

    def __post_init__(self):
        self.features = np.asarray(self.features, dtype=float).reshape(-1)

    @classmethod
    def from_features(cls, features: Optional[Sequence[float]]) -> Optional['Variable']:
        """
        Create a variable, or None if no features were given.

        Used for the optional division/appearance/disappearance variables,
        whose absence means the event can never happen.
        """
        if features is None or len(features) == 0:
            return None
        return cls(features=np.asarray(features, dtype=float))

    @property
    def num_features(self) -> int:
        return int(self.features.size)

    def is_registered(self) -> bool:
        return self.opt_id is not None

    def add_to_model(self, model, weight_ids: List[int]) -> int:
        """
        Allocate an optimizer variable and attach its weighted feature factor.

        Args:
            model: OptimizationModel to register with.
            weight_ids: 2 * num_features weight indices ("off" half first).

        Returns:
            The new optimizer variable id.
        """
        if self.opt_id is not None:
            raise RuntimeError(f"Variable already registered as {self.opt_id}")
        self.opt_id = model.add_variable()
        if self.num_features > 0:
            model.add_factor(self.opt_id, self.features, weight_ids)
        return self.opt_id

    def is_active(self, solution) -> bool:
        """Check the state of this variable in a solution."""
        if self.opt_id is None:
            return False
        return bool(solution[self.opt_id] > 0)

    def to_list(self) -> List[float]:
        return [float(f) for f in self.features]
