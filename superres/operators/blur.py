# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import jax
import jax.numpy as jnp
from jax.scipy.signal import convolve2d
from jaxtyping import Array

from superres.errors import InvalidParameter


def gaussian_kernel(sigma: float, size: Optional[int] = None) -> Array:
    """Normalized 2-D Gaussian point-spread function.

    Args:
        sigma: Standard deviation in pixels, must be positive.
        size: Odd side length. Defaults to ``2 * ceil(3 * sigma) + 1``.

    Returns:
        Array: ``(size, size)`` kernel summing to one.
    """
    if sigma <= 0:
        raise InvalidParameter(f"sigma must be positive, got {sigma}")
    if size is None:
        size = 2 * math.ceil(3 * sigma) + 1
    if size < 1 or size % 2 == 0:
        raise InvalidParameter(f"kernel size must be odd and positive, got {size}")
    coords = jnp.arange(size) - size // 2
    profile = jnp.exp(-(coords**2) / (2 * sigma**2))
    kernel = jnp.outer(profile, profile)
    return kernel / jnp.sum(kernel)


def _convolve_channels(image: Array, kernel: Array) -> Array:
    return jax.vmap(
        lambda channel: convolve2d(
            channel, kernel, mode="same", precision=jax.lax.Precision.HIGHEST
        )
    )(image)


@dataclass(frozen=True)
class Blur:
    """Spatially invariant blur: "same"-size convolution with zero boundary.

    The kernel must be 2-D with odd side lengths so that it has a center pixel;
    only then is the flipped-kernel convolution the exact adjoint.
    """

    kernel: Array

    def __post_init__(self):
        kernel = jnp.asarray(self.kernel, dtype=float)
        if kernel.ndim != 2 or kernel.size == 0:
            raise InvalidParameter(f"blur kernel must be a non-empty 2-D array, got {kernel.shape}")
        if kernel.shape[0] % 2 == 0 or kernel.shape[1] % 2 == 0:
            raise InvalidParameter(f"blur kernel sides must be odd, got {kernel.shape}")
        if not bool(jnp.all(jnp.isfinite(kernel))):
            raise InvalidParameter("blur kernel holds non-finite values")
        object.__setattr__(self, "kernel", kernel)

    @classmethod
    def gaussian(cls, sigma: float, size: Optional[int] = None) -> "Blur":
        return cls(gaussian_kernel(sigma, size))

    @classmethod
    def identity(cls) -> "Blur":
        return cls(jnp.ones((1, 1)))

    def apply(self, image: Array, frame_index: int = 0) -> Array:
        return _convolve_channels(image, self.kernel)

    def adjoint(self, residual: Array, frame_index: int = 0) -> Array:
        # rotate by 180 degrees
        return _convolve_channels(residual, self.kernel[::-1, ::-1])

    def output_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(shape)

    def input_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(shape)
