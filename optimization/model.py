"""
Optimizer-facing representation of a tracking problem.

The model consists of binary variables, weighted unary feature factors and
linear constraints. A factor attached to variable v with features f (length
n) and weight ids w (length 2n) contributes the energy

    E_v(s) = sum_i weights[w[s * n + i]] * f[i]

for state s in {0, 1}. The total energy of a labeling is linear in the
weights, which is what structured learning relies on.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.sparse import csr_matrix

from tracking.weight_layout import NUM_STATES


@dataclass(frozen=True)
class WeightedFactor:
    """Unary factor: features of one variable with their weight indices."""

    variable: int
    features: np.ndarray
    weight_ids: Tuple[int, ...]

    def state_weight_ids(self, state: int) -> Tuple[int, ...]:
        n = len(self.features)
        return self.weight_ids[state * n:(state + 1) * n]

    def energy(self, state: int, weights: np.ndarray) -> float:
        ids = list(self.state_weight_ids(state))
        return float(np.dot(weights[ids], self.features))


@dataclass(frozen=True)
class LinearConstraint:
    """lower <= sum_k coefficients[k] * x[variables[k]] <= upper (None = unbounded)."""

    variables: Tuple[int, ...]
    coefficients: Tuple[float, ...]
    lower: Optional[float]
    upper: Optional[float]

    def evaluate(self, solution) -> float:
        return float(sum(c * solution[v] for v, c in zip(self.variables, self.coefficients)))

    def is_satisfied(self, solution, tolerance: float = 1e-9) -> bool:
        value = self.evaluate(solution)
        if self.lower is not None and value < self.lower - tolerance:
            return False
        if self.upper is not None and value > self.upper + tolerance:
            return False
        return True


class OptimizationModel:
    """Binary variables, weighted feature factors and linear constraints."""

    def __init__(self, num_weights: int, weights: Optional[Sequence[float]] = None):
        self.num_weights = int(num_weights)
        self.num_variables = 0
        self.factors: List[WeightedFactor] = []
        self.constraints: List[LinearConstraint] = []
        self.weights = np.zeros(self.num_weights)
        if weights is not None:
            self.set_weights(weights)

    def set_weights(self, weights: Sequence[float]):
        weights = np.asarray(weights, dtype=float).reshape(-1)
        if weights.size != self.num_weights:
            raise ValueError(
                f"Expected {self.num_weights} weights, got {weights.size}"
            )
        self.weights = weights.copy()

    def add_variable(self) -> int:
        """Allocate a new binary variable and return its id."""
        var_id = self.num_variables
        self.num_variables += 1
        return var_id

    def add_factor(self, variable: int, features: Sequence[float], weight_ids: Sequence[int]):
        features = np.asarray(features, dtype=float).reshape(-1)
        if len(weight_ids) != NUM_STATES * features.size:
            raise ValueError(
                f"Factor on variable {variable} has {features.size} features but "
                f"{len(weight_ids)} weight ids"
            )
        if any(w < 0 or w >= self.num_weights for w in weight_ids):
            raise ValueError(f"Factor on variable {variable} uses weight ids out of range")
        self._check_variable(variable)
        self.factors.append(WeightedFactor(variable, features, tuple(int(w) for w in weight_ids)))

    def add_constraint(
        self,
        variables: Sequence[int],
        coefficients: Sequence[float],
        lower: Optional[float],
        upper: Optional[float]
    ):
        if len(variables) != len(coefficients):
            raise ValueError("Constraint needs one coefficient per variable")
        for v in variables:
            self._check_variable(v)
        self.constraints.append(LinearConstraint(
            tuple(int(v) for v in variables),
            tuple(float(c) for c in coefficients),
            lower,
            upper
        ))

    def _check_variable(self, variable):
        if variable is None or not 0 <= variable < self.num_variables:
            raise ValueError(f"Unknown model variable {variable}")

    # ------------------------------------------------------------------
    # Energies

    def _weights_or_default(self, weights) -> np.ndarray:
        if weights is None:
            return self.weights
        weights = np.asarray(weights, dtype=float).reshape(-1)
        if weights.size != self.num_weights:
            raise ValueError(f"Expected {self.num_weights} weights, got {weights.size}")
        return weights

    def check_solution(self, solution) -> np.ndarray:
        solution = np.asarray(solution).reshape(-1)
        if solution.size != self.num_variables:
            raise ValueError(
                f"Solution has {solution.size} entries, model has {self.num_variables} variables"
            )
        return solution

    def joint_feature(self, solution) -> np.ndarray:
        """
        Joint feature vector of a labeling: energy(solution) = weights . phi.

        Args:
            solution: Labeling with one entry per variable.

        Returns:
            Array of length num_weights.
        """
        solution = self.check_solution(solution)
        phi = np.zeros(self.num_weights)
        for factor in self.factors:
            state = 1 if solution[factor.variable] > 0 else 0
            np.add.at(phi, list(factor.state_weight_ids(state)), factor.features)
        return phi

    def energy(self, solution, weights=None) -> float:
        return float(np.dot(self._weights_or_default(weights), self.joint_feature(solution)))

    def linear_costs(self, weights=None) -> Tuple[np.ndarray, float]:
        """
        Express the energy as constant + costs . x for binary x.

        Returns:
            Tuple of (per-variable cost E(1) - E(0), constant sum of E(0)).
        """
        weights = self._weights_or_default(weights)
        costs = np.zeros(self.num_variables)
        constant = 0.0
        for factor in self.factors:
            off = factor.energy(0, weights)
            on = factor.energy(1, weights)
            costs[factor.variable] += on - off
            constant += off
        return costs, constant

    def constraint_matrix(self) -> Tuple[csr_matrix, np.ndarray, np.ndarray]:
        """
        Stack all constraints as A, lower bounds and upper bounds.

        Unbounded sides become -inf / inf.
        """
        rows, cols, data = [], [], []
        lower = np.full(len(self.constraints), -np.inf)
        upper = np.full(len(self.constraints), np.inf)
        for r, constraint in enumerate(self.constraints):
            for v, c in zip(constraint.variables, constraint.coefficients):
                rows.append(r)
                cols.append(v)
                data.append(c)
            if constraint.lower is not None:
                lower[r] = constraint.lower
            if constraint.upper is not None:
                upper[r] = constraint.upper
        matrix = csr_matrix(
            (data, (rows, cols)),
            shape=(len(self.constraints), self.num_variables)
        )
        return matrix, lower, upper

    def violated_constraints(self, solution) -> List[LinearConstraint]:
        solution = self.check_solution(solution)
        return [c for c in self.constraints if not c.is_satisfied(solution)]

    def __repr__(self) -> str:
        return (
            f"OptimizationModel(variables={self.num_variables}, factors={len(self.factors)}, "
            f"constraints={len(self.constraints)}, weights={self.num_weights})"
        )
