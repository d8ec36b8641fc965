# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Image priors for the MAP objective.

Every regularizer is built on a linear residual operator ``D`` made of shifted
pixel differences, and a penalty on those residuals::

    cost(x) = weight * sum(rho(D x))
    gradient(x) = weight * D^T (w * D x),   w = rho'(D x) / (D x)

``w`` doubles as the IRLS weights used by the solver to build its weighted
quadratic sub-problem.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import InvalidParameter

__all__ = [
    "Regularizer",
    "TikhonovRegularizer",
    "TotalVariationRegularizer",
    "BilateralTotalVariationRegularizer",
    "shift_difference",
    "shift_difference_adjoint",
]


def _valid_mask(rows: int, cols: int, dy: int, dx: int) -> Array:
    yy = jnp.arange(rows)[:, None] + dy
    xx = jnp.arange(cols)[None, :] + dx
    return (yy >= 0) & (yy < rows) & (xx >= 0) & (xx < cols)


def shift_difference(image: Array, dy: int, dx: int) -> Array:
    """``image[y + dy, x + dx] - image[y, x]``, zero where the neighbour is outside."""
    rows, cols = image.shape[-2:]
    mask = _valid_mask(rows, cols, dy, dx)
    shifted = jnp.roll(image, (-dy, -dx), axis=(-2, -1))
    return jnp.where(mask, shifted - image, 0.0)


def shift_difference_adjoint(residual: Array, dy: int, dx: int) -> Array:
    rows, cols = residual.shape[-2:]
    masked = jnp.where(_valid_mask(rows, cols, dy, dx), residual, 0.0)
    return jnp.roll(masked, (dy, dx), axis=(-2, -1)) - masked


class Regularizer(ABC):
    weight: float

    def _check_weight(self):
        if self.weight < 0:
            raise InvalidParameter(f"regularization weight must be >= 0, got {self.weight}")

    @property
    @abstractmethod
    def shifts(self) -> Tuple[Tuple[int, int], ...]:
        """Neighbour offsets ``(dy, dx)`` making up the residual operator."""
        pass

    @abstractmethod
    def penalty(self, residuals: Array) -> Array:
        """Unweighted penalty of a ``(num_shifts, C, H, W)`` residual stack."""
        pass

    @abstractmethod
    def irls_weights(self, residuals: Array) -> Array:
        """rho'(r) / r for every entry of the residual stack."""
        pass

    def residuals(self, image: Array) -> Array:
        return jnp.stack([shift_difference(image, dy, dx) for dy, dx in self.shifts])

    def adjoint(self, residuals: Array) -> Array:
        return sum(
            shift_difference_adjoint(residuals[i], dy, dx)
            for i, (dy, dx) in enumerate(self.shifts)
        )

    def cost(self, image: Array) -> Array:
        return self.weight * jnp.sum(self.penalty(self.residuals(image)))

    def gradient(self, image: Array) -> Array:
        residuals = self.residuals(image)
        return self.weight * self.adjoint(self.irls_weights(residuals) * residuals)


_FORWARD_DIFFERENCES = ((0, 1), (1, 0))


@dataclass(frozen=True)
class TikhonovRegularizer(Regularizer):
    """Quadratic smoothness prior, ``weight / 2 * ||grad x||**2``."""

    weight: float = 1e-2

    def __post_init__(self):
        self._check_weight()

    @property
    def shifts(self) -> Tuple[Tuple[int, int], ...]:
        return _FORWARD_DIFFERENCES

    def penalty(self, residuals: Array) -> Array:
        return 0.5 * residuals**2

    def irls_weights(self, residuals: Array) -> Array:
        return jnp.ones_like(residuals)


@dataclass(frozen=True)
class TotalVariationRegularizer(Regularizer):
    """Isotropic total variation, smoothed by ``epsilon`` so that it is differentiable."""

    weight: float = 1e-2
    epsilon: float = 1e-3

    def __post_init__(self):
        self._check_weight()
        if self.epsilon <= 0:
            raise InvalidParameter(f"epsilon must be positive, got {self.epsilon}")

    @property
    def shifts(self) -> Tuple[Tuple[int, int], ...]:
        return _FORWARD_DIFFERENCES

    def _magnitude(self, residuals: Array) -> Array:
        return jnp.sqrt(jnp.sum(residuals**2, axis=0) + self.epsilon**2)

    def penalty(self, residuals: Array) -> Array:
        return self._magnitude(residuals) - self.epsilon

    def irls_weights(self, residuals: Array) -> Array:
        return jnp.broadcast_to(1.0 / self._magnitude(residuals), residuals.shape)


@dataclass(frozen=True)
class BilateralTotalVariationRegularizer(Regularizer):
    """Bilateral total variation.

    Penalizes differences with every neighbour within ``radius`` pixels, the
    neighbour at offset ``(l, m)`` weighted by ``decay ** (|l| + |m|)``. Each
    unordered pair of pixels is counted once.
    """

    weight: float = 1e-2
    radius: int = 2
    decay: float = 0.7
    epsilon: float = 1e-3

    def __post_init__(self):
        self._check_weight()
        if self.radius < 1:
            raise InvalidParameter(f"radius must be >= 1, got {self.radius}")
        if not 0 < self.decay <= 1:
            raise InvalidParameter(f"decay must be in (0, 1], got {self.decay}")
        if self.epsilon <= 0:
            raise InvalidParameter(f"epsilon must be positive, got {self.epsilon}")

    @property
    def shifts(self) -> Tuple[Tuple[int, int], ...]:
        return tuple(
            (dy, dx)
            for dy in range(0, self.radius + 1)
            for dx in range(-self.radius, self.radius + 1)
            if dy > 0 or dx > 0
        )

    def _decays(self) -> Array:
        decays = jnp.array([self.decay ** (abs(dy) + abs(dx)) for dy, dx in self.shifts])
        return decays[:, None, None, None]

    def penalty(self, residuals: Array) -> Array:
        return self._decays() * (jnp.sqrt(residuals**2 + self.epsilon**2) - self.epsilon)

    def irls_weights(self, residuals: Array) -> Array:
        return self._decays() / jnp.sqrt(residuals**2 + self.epsilon**2)
