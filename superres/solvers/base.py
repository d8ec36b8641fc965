# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Sequence, Tuple

import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import DimensionMismatch, InvalidOptions
from superres.image import as_image
from superres.image_model import ImageModel

__all__ = [
    "MapSolverOptions",
    "check_iteration_cap",
    "TerminationReason",
    "SolverDiagnostics",
    "SolverResult",
    "MapSolver",
]


def check_iteration_cap(name: str, value):
    """Raise :class:`InvalidOptions` unless ``value`` is a positive int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidOptions(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidOptions(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class MapSolverOptions:
    """Options shared by every MAP solver.

    Attributes:
        max_inner_iterations: Iteration cap of the inner least-squares solver.
        inner_tolerance: Relative residual tolerance of the inner solver.
    """

    max_inner_iterations: int = 50
    inner_tolerance: float = 1e-6

    def __post_init__(self):
        self.validate()

    def validate(self):
        check_iteration_cap("max_inner_iterations", self.max_inner_iterations)
        if self.inner_tolerance < 0:
            raise InvalidOptions(
                f"inner_tolerance must be >= 0, got {self.inner_tolerance}"
            )

    def describe(self) -> Dict[str, Any]:
        return asdict(self)


class TerminationReason(str, Enum):
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    NUMERICAL_NON_CONVERGENCE = "numerical_non_convergence"


class SolverDiagnostics(NamedTuple):
    """Summary of a solve, for the caller to log or display.

    Attributes:
        final_cost: Objective value of the returned estimate.
        num_iterations: Outer iterations performed.
        termination: Why the outer loop stopped.
        cost_history: Objective after every accepted iteration, starting with
            the initial estimate.
        options: The options actually used, after adaptive adjustment.
    """

    final_cost: float
    num_iterations: int
    termination: TerminationReason
    cost_history: Tuple[float, ...]
    options: Dict[str, Any]


class SolverResult(NamedTuple):
    estimate: Array
    diagnostics: SolverDiagnostics


class MapSolver(ABC):
    """Maximum a posteriori estimation of an HR image from LR observations.

    Subclasses implement :meth:`solve`; this base only owns the validated
    inputs, which are never mutated.
    """

    def __init__(
        self,
        options: MapSolverOptions,
        image_model: ImageModel,
        observations: Sequence[Array],
    ):
        observations = [as_image(observation) for observation in observations]
        if len(observations) != image_model.num_frames:
            raise DimensionMismatch(
                f"got {len(observations)} observations for an image model "
                f"with {image_model.num_frames} frames"
            )
        shapes = {observation.shape for observation in observations}
        if len(shapes) != 1:
            raise DimensionMismatch(f"observations differ in shape: {sorted(shapes)}")

        self.options = options
        self.image_model = image_model
        self.observations = jnp.stack(observations)

    def check_initial_estimate(self, estimate: Array):
        """Raise :class:`DimensionMismatch` unless ``estimate`` degrades to the observation size."""
        expected = self.image_model.lr_shape(estimate.shape)
        observed = tuple(self.observations.shape[1:])
        if tuple(expected) != observed:
            raise DimensionMismatch(
                f"an estimate of shape {estimate.shape} degrades to {expected}, "
                f"observations have shape {observed}"
            )

    @abstractmethod
    def solve(self, initial_estimate: Array) -> SolverResult:
        """Run the solver from ``initial_estimate``."""
        pass
