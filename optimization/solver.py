"""
Exact MAP inference by integer linear programming.
"""

from typing import Optional, Sequence

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp

from config import SolverConfig
from tracking.errors import ExternalOptimizerError
from utils import get_logger

from .model import OptimizationModel

logger = get_logger('optimization.solver')


class IlpSolver:
    """
    Minimizes the energy of an OptimizationModel over binary labelings.

    Every variable is integral with bounds [0, 1]; the model's linear
    constraints are passed to scipy's MILP interface (HiGHS) as hard
    constraints.
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()
        self.last_energy: Optional[float] = None

    def _options(self) -> dict:
        options = {
            'disp': self.config.verbose,
            'presolve': self.config.presolve,
            'mip_rel_gap': self.config.mip_rel_gap,
        }
        if self.config.time_limit is not None:
            options['time_limit'] = self.config.time_limit
        return options

    def solve(
        self,
        model: OptimizationModel,
        weights: Optional[Sequence[float]] = None,
        extra_costs: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        Find the minimum energy labeling.

        Args:
            model: Model to solve.
            weights: Weights to use instead of model.weights.
            extra_costs: Additional per-variable linear costs (e.g. the
                         Hamming loss term of loss-augmented inference).

        Returns:
            Solution as an int array with one entry per model variable.

        Raises:
            ExternalOptimizerError: If the solver does not report an optimum.
        """
        costs, constant = model.linear_costs(weights)
        if extra_costs is not None:
            costs = costs + np.asarray(extra_costs, dtype=float)

        if model.num_variables == 0:
            self.last_energy = constant
            return np.zeros(0, dtype=int)

        constraints = None
        if model.constraints:
            matrix, lower, upper = model.constraint_matrix()
            constraints = LinearConstraint(matrix, lower, upper)

        result = milp(
            c=costs,
            integrality=np.ones(model.num_variables),
            bounds=Bounds(0, 1),
            constraints=constraints,
            options=self._options()
        )

        if result.status != 0 or result.x is None:
            raise ExternalOptimizerError(
                f"ILP solver failed with status {result.status}: {result.message}"
            )

        solution = np.rint(result.x).astype(int)
        self.last_energy = float(result.fun) + constant
        logger.debug(f"solution has energy: {self.last_energy}")
        return solution
