# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from dataclasses import dataclass
from typing import Sequence, Tuple

import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import DimensionMismatch, IndexOutOfRange, InvalidParameter


@dataclass(frozen=True)
class MotionWarp:
    """Per-frame sub-pixel motion.

    Frame ``k`` moves the image content by ``displacements[k]``: the warped
    pixel ``(y, x)`` is bilinearly sampled from ``(y - dy, x - dx)`` in the
    input, and samples falling outside the image read zero.

    Args:
        displacements: Either ``(num_frames, 2)`` global ``(dy, dx)`` shifts
            or a ``(num_frames, 2, H, W)`` dense flow field.
    """

    displacements: Array

    def __post_init__(self):
        displacements = jnp.asarray(self.displacements, dtype=float)
        if displacements.ndim not in (2, 4) or displacements.shape[1] != 2:
            raise InvalidParameter(
                "displacements must have shape (num_frames, 2) or "
                f"(num_frames, 2, H, W), got {displacements.shape}"
            )
        if displacements.shape[0] < 1:
            raise InvalidParameter("displacements must describe at least one frame")
        if not bool(jnp.all(jnp.isfinite(displacements))):
            raise InvalidParameter("displacements hold non-finite values")
        object.__setattr__(self, "displacements", displacements)

    @classmethod
    def from_shifts(cls, shifts: Sequence[Tuple[float, float]]) -> "MotionWarp":
        return cls(jnp.asarray(shifts, dtype=float).reshape(-1, 2))

    @property
    def num_frames(self) -> int:
        return self.displacements.shape[0]

    def _field(self, frame_index, rows: int, cols: int) -> Tuple[Array, Array]:
        # traced indices are checked by ImageModel
        if isinstance(frame_index, int) and not 0 <= frame_index < self.num_frames:
            raise IndexOutOfRange(
                f"frame index {frame_index} outside [0, {self.num_frames})"
            )
        displacement = self.displacements[frame_index]
        if displacement.ndim == 1:
            dy = jnp.full((rows, cols), displacement[0])
            dx = jnp.full((rows, cols), displacement[1])
            return dy, dx
        if displacement.shape[-2:] != (rows, cols):
            raise DimensionMismatch(
                f"flow field of size {displacement.shape[-2:]} cannot warp an "
                f"image of size {(rows, cols)}"
            )
        return displacement[0], displacement[1]

    def _bilinear_taps(self, frame_index, rows: int, cols: int) -> Tuple[Array, Array]:
        """Flat source indices and weights of the four bilinear taps.

        Returns:
            Tuple of ``(indices, weights)``, both ``(4, rows, cols)``. Taps that
            fall outside the image carry zero weight.
        """
        dy, dx = self._field(frame_index, rows, cols)
        yy, xx = jnp.meshgrid(jnp.arange(rows), jnp.arange(cols), indexing="ij")
        src_y = yy - dy
        src_x = xx - dx
        y0 = jnp.floor(src_y)
        x0 = jnp.floor(src_x)
        fy = src_y - y0
        fx = src_x - x0
        y0 = y0.astype(jnp.int32)
        x0 = x0.astype(jnp.int32)

        indices, weights = [], []
        for oy, ox, weight in (
            (0, 0, (1 - fy) * (1 - fx)),
            (0, 1, (1 - fy) * fx),
            (1, 0, fy * (1 - fx)),
            (1, 1, fy * fx),
        ):
            tap_y = y0 + oy
            tap_x = x0 + ox
            inside = (tap_y >= 0) & (tap_y < rows) & (tap_x >= 0) & (tap_x < cols)
            flat = jnp.clip(tap_y, 0, rows - 1) * cols + jnp.clip(tap_x, 0, cols - 1)
            indices.append(flat)
            weights.append(jnp.where(inside, weight, 0.0))
        return jnp.stack(indices), jnp.stack(weights)

    def apply(self, image: Array, frame_index: int = 0) -> Array:
        channels, rows, cols = image.shape
        indices, weights = self._bilinear_taps(frame_index, rows, cols)
        samples = image.reshape(channels, rows * cols)[:, indices]
        return jnp.sum(samples * weights[None], axis=1)

    def adjoint(self, residual: Array, frame_index: int = 0) -> Array:
        channels, rows, cols = residual.shape
        indices, weights = self._bilinear_taps(frame_index, rows, cols)
        contributions = residual[:, None] * weights[None]
        splat = jnp.zeros((channels, rows * cols), dtype=contributions.dtype)
        splat = splat.at[:, indices.reshape(-1)].add(
            contributions.reshape(channels, -1)
        )
        return splat.reshape(channels, rows, cols)

    def output_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(shape)

    def input_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(shape)
