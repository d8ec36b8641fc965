# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Inner least-squares solvers.

Both solvers minimize ``0.5 * <v, H v> - <rhs, v>`` for a symmetric positive
semi-definite ``H`` given only through ``matvec``; they are traceable and may
run under ``jax.jit``.
"""

from dataclasses import dataclass
from typing import Callable, Protocol

import jax
import jax.numpy as jnp
import optax
from jax.scipy.sparse.linalg import cg
from jaxtyping import Array

__all__ = ["InnerSolver", "ConjugateGradientSolver", "LbfgsSolver"]


class InnerSolver(Protocol):
    def __call__(
        self,
        matvec: Callable[[Array], Array],
        rhs: Array,
        x0: Array,
        max_iterations: int,
        tolerance: float,
    ) -> Array: ...


@dataclass(frozen=True)
class ConjugateGradientSolver:
    """Solve ``H v = rhs`` with conjugate gradient on the explicit system."""

    def __call__(
        self,
        matvec: Callable[[Array], Array],
        rhs: Array,
        x0: Array,
        max_iterations: int,
        tolerance: float,
    ) -> Array:
        solution, _ = cg(matvec, rhs, x0=x0, tol=tolerance, maxiter=max_iterations)
        return solution


@dataclass(frozen=True)
class LbfgsSolver:
    """Minimize the quadratic through its cost and gradient with ``optax.lbfgs``.

    Args:
        memory_size: Number of past updates kept for the curvature estimate.
    """

    memory_size: int = 10

    def __call__(
        self,
        matvec: Callable[[Array], Array],
        rhs: Array,
        x0: Array,
        max_iterations: int,
        tolerance: float,
    ) -> Array:
        def objective(v: Array) -> Array:
            return 0.5 * jnp.vdot(v, matvec(v)) - jnp.vdot(rhs, v)

        opt = optax.lbfgs(memory_size=self.memory_size)
        value_and_grad = optax.value_and_grad_from_state(objective)
        stop = tolerance * jnp.linalg.norm(rhs)

        def step(carry):
            params, state, it = carry
            value, grad = value_and_grad(params, state=state)
            updates, state = opt.update(
                grad, state, params, value=value, grad=grad, value_fn=objective
            )
            return optax.apply_updates(params, updates), state, it + 1

        def continuing(carry):
            _, state, it = carry
            grad = optax.tree_utils.tree_get(state, "grad")
            return (it == 0) | ((it < max_iterations) & (jnp.linalg.norm(grad) > stop))

        params, _, _ = jax.lax.while_loop(continuing, step, (x0, opt.init(x0), 0))
        return params
