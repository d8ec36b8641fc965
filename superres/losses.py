# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Robust penalties on data residuals.

Each loss exposes its per-pixel penalty ``rho(r)`` and the IRLS weight
``rho'(r) / r``. Minimizing ``sum(rho(r))`` is approximated by a sequence of
weighted quadratic problems ``sum(w * r**2) / 2`` with ``w`` frozen at the
previous residual; for the losses below ``rho(sqrt(u))`` is concave, so each
quadratic majorizes the true cost and the sequence never increases it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import InvalidParameter

__all__ = ["DataLoss", "L2Loss", "HuberLoss", "CharbonnierLoss"]


class DataLoss(ABC):
    @abstractmethod
    def penalty(self, residual: Array) -> Array:
        """Per-pixel penalty rho(r)."""
        pass

    @abstractmethod
    def weights(self, residual: Array) -> Array:
        """Per-pixel IRLS weights rho'(r) / r, strictly positive."""
        pass

    def cost(self, residual: Array) -> Array:
        return jnp.sum(self.penalty(residual))


@dataclass(frozen=True)
class L2Loss(DataLoss):
    """Plain least squares, ``r**2 / 2``; every pixel keeps weight one."""

    def penalty(self, residual: Array) -> Array:
        return 0.5 * residual**2

    def weights(self, residual: Array) -> Array:
        return jnp.ones_like(residual)


@dataclass(frozen=True)
class HuberLoss(DataLoss):
    """Quadratic below ``delta``, linear above it."""

    delta: float = 0.05

    def __post_init__(self):
        if self.delta <= 0:
            raise InvalidParameter(f"delta must be positive, got {self.delta}")

    def penalty(self, residual: Array) -> Array:
        magnitude = jnp.abs(residual)
        return jnp.where(
            magnitude <= self.delta,
            0.5 * residual**2,
            self.delta * (magnitude - 0.5 * self.delta),
        )

    def weights(self, residual: Array) -> Array:
        return self.delta / jnp.maximum(jnp.abs(residual), self.delta)


@dataclass(frozen=True)
class CharbonnierLoss(DataLoss):
    """Smoothed L1, ``sqrt(r**2 + eps**2) - eps``."""

    epsilon: float = 1e-3

    def __post_init__(self):
        if self.epsilon <= 0:
            raise InvalidParameter(f"epsilon must be positive, got {self.epsilon}")

    def penalty(self, residual: Array) -> Array:
        return jnp.sqrt(residual**2 + self.epsilon**2) - self.epsilon

    def weights(self, residual: Array) -> Array:
        return 1.0 / jnp.sqrt(residual**2 + self.epsilon**2)
