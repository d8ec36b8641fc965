# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from dataclasses import dataclass
from typing import Tuple

from jaxtyping import Array

from superres.errors import DimensionMismatch
from superres.image import additive_upsample, area_downsample, integer_factor


@dataclass(frozen=True)
class Downsample:
    """Area-average downsampling by an integer scale.

    Args:
        scale: Reduction factor along each axis, must be an integer >= 1.
    """

    scale: float

    def __post_init__(self):
        integer_factor(self.scale)

    @property
    def factor(self) -> int:
        return integer_factor(self.scale)

    def apply(self, image: Array, frame_index: int = 0) -> Array:
        return area_downsample(image, self.factor)

    def adjoint(self, residual: Array, frame_index: int = 0) -> Array:
        return additive_upsample(residual, self.factor)

    def output_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        *lead, rows, cols = shape
        if rows % self.factor or cols % self.factor:
            raise DimensionMismatch(
                f"image size {(rows, cols)} is not divisible by scale {self.factor}"
            )
        return (*lead, rows // self.factor, cols // self.factor)

    def input_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]:
        *lead, rows, cols = shape
        return (*lead, rows * self.factor, cols * self.factor)
