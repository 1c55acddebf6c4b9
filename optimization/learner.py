"""
Structured max-margin learning of the weight vector.
"""

from typing import Optional, Sequence

import numpy as np
from tqdm import tqdm

from config import LearningConfig
from utils import get_logger

from .model import OptimizationModel
from .solver import IlpSolver

logger = get_logger('optimization.learner')


def hamming_loss(solution, ground_truth) -> int:
    """Number of variables labeled differently."""
    return int(np.sum(np.asarray(solution) != np.asarray(ground_truth)))


class StructMaxMarginLearner:
    """
    Structured SVM with Hamming loss, trained by subgradient descent.

    Minimizes

        lambda / 2 * ||w||^2 + max_y [loss(y, y_gt) - E(y)] + E(y_gt)

    where the max is found by loss-augmented ILP inference. Energies are
    linear in w, E(y) = w . phi(y), so the subgradient of the hinge term is
    phi(y_gt) - phi(y_hat).
    """

    def __init__(
        self,
        config: Optional[LearningConfig] = None,
        solver: Optional[IlpSolver] = None
    ):
        self.config = config or LearningConfig()
        self.solver = solver or IlpSolver()
        self.history = []

    def objective(self, weights: np.ndarray, hinge: float) -> float:
        return 0.5 * self.config.regularizer_weight * float(np.dot(weights, weights)) + hinge

    def loss_augmented_inference(self, model: OptimizationModel, weights, ground_truth) -> np.ndarray:
        """
        Find argmin_y E(y) - loss(y, y_gt).

        The Hamming loss is sum_v gt_v + sum_v (1 - 2 gt_v) y_v, so it enters
        the ILP as the per-variable cost 2 gt_v - 1.
        """
        extra_costs = 2.0 * ground_truth - 1.0
        return self.solver.solve(model, weights=weights, extra_costs=extra_costs)

    def learn(
        self,
        model: OptimizationModel,
        ground_truth: Sequence[int],
        initial_weights: Optional[Sequence[float]] = None
    ) -> np.ndarray:
        """
        Learn weights so that the ground truth becomes the minimum energy labeling.

        Args:
            model: Built optimization model.
            ground_truth: Full labeling of all model variables.
            initial_weights: Starting point. Defaults to model.weights.

        Returns:
            Weight vector with the lowest objective seen.
        """
        ground_truth = model.check_solution(ground_truth).astype(float)
        violated = model.violated_constraints(ground_truth)
        if violated:
            logger.warning(f"Ground truth violates {len(violated)} model constraints")

        weights = np.array(
            model.weights if initial_weights is None else initial_weights,
            dtype=float
        )
        phi_gt = model.joint_feature(ground_truth)

        best_weights = weights.copy()
        best_objective = np.inf
        self.history = []

        iterations = range(1, self.config.max_iterations + 1)
        iterator = tqdm(iterations, desc="Learning") if self.config.show_progress else iterations

        for t in iterator:
            y_hat = self.loss_augmented_inference(model, weights, ground_truth)
            phi_hat = model.joint_feature(y_hat)
            loss = hamming_loss(y_hat, ground_truth)
            hinge = max(0.0, loss - float(np.dot(weights, phi_hat)) + float(np.dot(weights, phi_gt)))

            objective = self.objective(weights, hinge)
            self.history.append({'iteration': t, 'objective': objective, 'hinge': hinge, 'loss': loss})
            if objective < best_objective:
                best_objective = objective
                best_weights = weights.copy()

            if self.config.show_progress:
                iterator.set_description(f"Learning (objective {objective:.4f}, loss {loss})")

            if hinge <= self.config.epsilon:
                logger.info(f"Converged after {t} iterations")
                break

            gradient = self.config.regularizer_weight * weights + phi_gt - phi_hat
            weights = weights - self.config.learning_rate / np.sqrt(t) * gradient

        logger.info(f"Learning finished with objective {best_objective:.6f}")
        return best_weights
