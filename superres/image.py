# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
"""Pixel-buffer helpers.

Images are JAX arrays laid out as ``(channels, rows, cols)``. Every channel of
an image shares the same size by construction, and arrays are immutable, so
"copies" are only ever new arrays returned by these helpers.
"""

from enum import Enum
from typing import Optional, Tuple

import einops
import jax
import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import DimensionMismatch, InvalidParameter

__all__ = [
    "Interpolation",
    "as_image",
    "num_channels",
    "image_size",
    "num_pixels",
    "integer_factor",
    "area_downsample",
    "additive_upsample",
    "resize",
]


class Interpolation(str, Enum):
    NEAREST = "nearest"
    LINEAR = "linear"
    # block average when shrinking by an integer factor
    AREA = "area"
    # transpose of AREA: spreads value / factor**2 over each block
    ADDITIVE = "additive"


def as_image(array) -> Array:
    """Promote ``array`` to a floating ``(C, H, W)`` image.

    A 2-D array becomes a single-channel image. Anything that is not 2-D or 3-D
    raises :class:`DimensionMismatch`.
    """
    image = jnp.asarray(array)
    if image.ndim == 2:
        image = image[None]
    if image.ndim != 3:
        raise DimensionMismatch(
            f"expected an image of shape (C, H, W) or (H, W), got {image.shape}"
        )
    if not jnp.issubdtype(image.dtype, jnp.floating):
        image = image.astype(jnp.float32)
    return image


def num_channels(image: Array) -> int:
    return image.shape[0]


def image_size(image: Array) -> Tuple[int, int]:
    return tuple(image.shape[-2:])


def num_pixels(image: Array) -> int:
    rows, cols = image_size(image)
    return rows * cols


def integer_factor(scale: float) -> int:
    """Return ``scale`` as an int, raising if it is below 1 or not integral."""
    if scale < 1:
        raise InvalidParameter(f"scale must be >= 1, got {scale}")
    factor = int(round(scale))
    if abs(factor - scale) > 1e-9:
        raise InvalidParameter(f"scale must be an integer factor, got {scale}")
    return factor


def area_downsample(image: Array, factor: int) -> Array:
    """Average every ``factor x factor`` block into one pixel."""
    rows, cols = image_size(image)
    if rows % factor or cols % factor:
        raise DimensionMismatch(
            f"image size {(rows, cols)} is not divisible by scale {factor}"
        )
    return einops.reduce(
        image, "c (h s1) (w s2) -> c h w", "mean", s1=factor, s2=factor
    )


def additive_upsample(image: Array, factor: int) -> Array:
    """Splat every pixel over a ``factor x factor`` block, preserving the sum.

    This is the exact transpose of :func:`area_downsample`.
    """
    blocks = einops.repeat(image, "c h w -> c (h s1) (w s2)", s1=factor, s2=factor)
    return blocks / factor**2


def _target_size(
    image: Array, scale: Optional[float], size: Optional[Tuple[int, int]]
) -> Tuple[int, int]:
    if (scale is None) == (size is None):
        raise InvalidParameter("exactly one of scale or size must be given")
    if size is not None:
        rows, cols = int(size[0]), int(size[1])
    else:
        if scale <= 0:
            raise InvalidParameter(f"resize scale must be positive, got {scale}")
        rows, cols = (int(round(n * scale)) for n in image_size(image))
    if rows < 1 or cols < 1:
        raise InvalidParameter(f"resize target {(rows, cols)} is empty")
    return rows, cols


def resize(
    image: Array,
    scale: Optional[float] = None,
    size: Optional[Tuple[int, int]] = None,
    interpolation: Interpolation = Interpolation.LINEAR,
) -> Array:
    """Resize every channel of ``image`` to ``size`` or by ``scale``.

    Args:
        image: ``(C, H, W)`` image.
        scale: Size multiplier (``0.5`` halves each side).
        size: Explicit ``(rows, cols)`` target.
        interpolation: One of :class:`Interpolation`. ``AREA`` only shrinks and
            ``ADDITIVE`` only enlarges, both by an integer factor.

    Returns:
        Array: The resized image.
    """
    interpolation = Interpolation(interpolation)
    rows, cols = image_size(image)
    new_rows, new_cols = _target_size(image, scale, size)

    if interpolation is Interpolation.AREA:
        factor = rows // new_rows
        if factor < 1 or new_rows * factor != rows or new_cols * factor != cols:
            raise InvalidParameter(
                f"area resize {(rows, cols)} -> {(new_rows, new_cols)} "
                "is not an integer reduction"
            )
        return area_downsample(image, factor)

    if interpolation is Interpolation.ADDITIVE:
        factor = new_rows // rows
        if factor < 1 or rows * factor != new_rows or cols * factor != new_cols:
            raise InvalidParameter(
                f"additive resize {(rows, cols)} -> {(new_rows, new_cols)} "
                "is not an integer enlargement"
            )
        return additive_upsample(image, factor)

    return jax.image.resize(
        image, (num_channels(image), new_rows, new_cols), method=interpolation.value
    )
