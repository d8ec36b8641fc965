# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Iteratively reweighted least squares (IRLS) MAP solver."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import jax
import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import InvalidOptions
from superres.image import as_image
from superres.image_model import ImageModel
from superres.losses import DataLoss, L2Loss
from superres.regularizers import Regularizer
from superres.solvers.base import (
    MapSolver,
    MapSolverOptions,
    SolverDiagnostics,
    SolverResult,
    TerminationReason,
    check_iteration_cap,
)
from superres.solvers.inner import ConjugateGradientSolver, InnerSolver
from superres.solvers.policies import FixedThresholds, ThresholdPolicy

__all__ = ["IRLSMapSolverOptions", "IRLSMapSolver"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IRLSMapSolverOptions(MapSolverOptions):
    """IRLS options.

    Attributes:
        max_irls_iterations: Maximum number of outer (reweighting) iterations.
            Each runs the inner solver for at most ``max_inner_iterations``.
        irls_cost_difference_threshold: The outer loop stops once the cost
            changes by less than this between two iterations.
    """

    max_irls_iterations: int = 20
    irls_cost_difference_threshold: float = 1e-5

    def validate(self):
        super().validate()
        check_iteration_cap("max_irls_iterations", self.max_irls_iterations)
        if self.irls_cost_difference_threshold < 0:
            raise InvalidOptions(
                "irls_cost_difference_threshold must be >= 0, "
                f"got {self.irls_cost_difference_threshold}"
            )


class IRLSMapSolver(MapSolver):
    r"""MAP super-resolution by iteratively reweighted least squares.

    Minimizes
    .. math::
        \sum_k \sum \rho(A_k x - y_k) + \sum_j \lambda_j \sum \rho_j(D_j x)

    by freezing the IRLS weights at the current estimate and solving the
    weighted normal equations for an update with the inner solver:
    .. math::
        (\sum_k A_k^T W_k A_k + \sum_j \lambda_j D_j^T V_j D_j) \delta = -g

    Args:
        options: IRLS options.
        image_model: Degradation model shared by all observations.
        observations: One LR image per frame of ``image_model``.
        data_loss: Robust penalty on the data residuals.
        regularizers: Priors summed into the objective.
        inner_solver: Solver of the weighted least-squares sub-problem.
        threshold_policy: Adjusts the options to the problem size at solve time.
    """

    def __init__(
        self,
        options: IRLSMapSolverOptions,
        image_model: ImageModel,
        observations: Sequence[Array],
        data_loss: Optional[DataLoss] = None,
        regularizers: Sequence[Regularizer] = (),
        inner_solver: Optional[InnerSolver] = None,
        threshold_policy: Optional[ThresholdPolicy] = None,
    ):
        if not isinstance(options, IRLSMapSolverOptions):
            raise InvalidOptions(
                f"IRLSMapSolver needs IRLSMapSolverOptions, got {type(options).__name__}"
            )
        super().__init__(options, image_model, observations)
        self.data_loss = data_loss if data_loss is not None else L2Loss()
        self.regularizers = tuple(regularizers)
        self.inner_solver = inner_solver if inner_solver is not None else ConjugateGradientSolver()
        self.threshold_policy = (
            threshold_policy if threshold_policy is not None else FixedThresholds()
        )

    @property
    def regularization_weight_sum(self) -> float:
        return float(sum(regularizer.weight for regularizer in self.regularizers))

    def total_cost(self, estimate: Array) -> Array:
        """Data term plus every regularization term."""
        residuals = self.image_model.apply_all(estimate) - self.observations
        cost = self.data_loss.cost(residuals)
        for regularizer in self.regularizers:
            cost = cost + regularizer.cost(estimate)
        return cost

    def gradient(self, estimate: Array) -> Array:
        """Gradient of :meth:`total_cost` at ``estimate``."""
        residuals = self.image_model.apply_all(estimate) - self.observations
        gradient = self.image_model.adjoint_sum(self.data_loss.weights(residuals) * residuals)
        for regularizer in self.regularizers:
            gradient = gradient + regularizer.gradient(estimate)
        return gradient

    def _irls_step(self, estimate: Array, options: IRLSMapSolverOptions) -> Array:
        model = self.image_model

        # reweighting
        residuals = model.apply_all(estimate) - self.observations
        data_weights = self.data_loss.weights(residuals)
        gradient = model.adjoint_sum(data_weights * residuals)
        prior_weights: List[Array] = []
        for regularizer in self.regularizers:
            prior_residuals = regularizer.residuals(estimate)
            weights = regularizer.irls_weights(prior_residuals)
            gradient = gradient + regularizer.weight * regularizer.adjoint(
                weights * prior_residuals
            )
            prior_weights.append(weights)

        # weighted normal equations
        def matvec(v: Array) -> Array:
            out = model.adjoint_sum(data_weights * model.apply_all(v))
            for regularizer, weights in zip(self.regularizers, prior_weights):
                out = out + regularizer.weight * regularizer.adjoint(
                    weights * regularizer.residuals(v)
                )
            return out

        update = self.inner_solver(
            matvec,
            -gradient,
            jnp.zeros_like(estimate),
            options.max_inner_iterations,
            options.inner_tolerance,
        )
        return estimate + update

    def solve(self, initial_estimate: Array) -> SolverResult:
        estimate = as_image(initial_estimate)
        self.check_initial_estimate(estimate)

        options = self.threshold_policy.adjust(
            self.options, estimate.size, self.regularization_weight_sum
        )
        logger.debug("IRLS options: %s", options.describe())

        step = jax.jit(lambda x: self._irls_step(x, options))
        total_cost = jax.jit(self.total_cost)

        cost = float(total_cost(estimate))
        history = [cost]
        termination = TerminationReason.MAX_ITERATIONS_REACHED
        num_iterations = 0

        for num_iterations in range(1, options.max_irls_iterations + 1):
            candidate = step(estimate)
            new_cost = float(total_cost(candidate))
            logger.debug("IRLS iteration %d: cost %.6e", num_iterations, new_cost)

            if abs(cost - new_cost) < options.irls_cost_difference_threshold:
                estimate, cost = candidate, new_cost
                history.append(cost)
                termination = TerminationReason.CONVERGED
                break
            if not math.isfinite(new_cost) or new_cost > cost:
                logger.warning(
                    "IRLS iteration %d raised the cost from %.6e to %.6e, "
                    "keeping the previous estimate",
                    num_iterations,
                    cost,
                    new_cost,
                )
                termination = TerminationReason.NUMERICAL_NON_CONVERGENCE
                break
            estimate, cost = candidate, new_cost
            history.append(cost)

        logger.info(
            "IRLS stopped after %d iterations (%s), cost %.6e",
            num_iterations,
            termination.value,
            cost,
        )
        diagnostics = SolverDiagnostics(
            final_cost=cost,
            num_iterations=num_iterations,
            termination=termination,
            cost_history=tuple(history),
            options=options.describe(),
        )
        return SolverResult(estimate, diagnostics)
