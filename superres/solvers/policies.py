# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Adaptive adjustment of solver thresholds.

A policy receives the validated options together with the size of the problem
and returns the options the solver should actually run with.
"""

import dataclasses
from dataclasses import dataclass
from typing import Protocol

from superres.solvers.base import MapSolverOptions

__all__ = ["ThresholdPolicy", "FixedThresholds", "ProblemSizeThresholds"]


class ThresholdPolicy(Protocol):
    def adjust(
        self,
        options: MapSolverOptions,
        num_parameters: int,
        regularization_weight_sum: float,
    ) -> MapSolverOptions: ...


@dataclass(frozen=True)
class FixedThresholds:
    """Use the options unchanged."""

    def adjust(
        self,
        options: MapSolverOptions,
        num_parameters: int,
        regularization_weight_sum: float,
    ) -> MapSolverOptions:
        return options


@dataclass(frozen=True)
class ProblemSizeThresholds:
    """Scale the cost threshold with the size of the objective.

    The objective is a sum over every HR parameter and every regularizer, so the
    cost-difference threshold is multiplied by
    ``num_parameters * (1 + regularization_weight_sum)``. The inner budget is
    capped at ``num_parameters``, after which conjugate gradient has converged
    in exact arithmetic.
    """

    def adjust(
        self,
        options: MapSolverOptions,
        num_parameters: int,
        regularization_weight_sum: float,
    ) -> MapSolverOptions:
        scale = num_parameters * (1.0 + regularization_weight_sum)
        changes = {
            "max_inner_iterations": max(1, min(options.max_inner_iterations, num_parameters))
        }
        if hasattr(options, "irls_cost_difference_threshold"):
            changes["irls_cost_difference_threshold"] = (
                options.irls_cost_difference_threshold * scale
            )
        return dataclasses.replace(options, **changes)
