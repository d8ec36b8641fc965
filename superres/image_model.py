# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from dataclasses import dataclass
from functools import reduce
from typing import Optional, Sequence, Tuple

import jax
from jaxtyping import Array, PRNGKeyArray

from superres.errors import IndexOutOfRange, InvalidParameter
from superres.image import Interpolation, resize
from superres.operators import DegradationOperator, Downsample
from superres.utils.mapping import map_frames, sum_frames

__all__ = ["ImageModel"]


@dataclass(frozen=True)
class ImageModel:
    """Ordered chain of degradation operators shared by all observations.

    The forward model folds the operators left to right (HR -> LR); the
    adjoint folds their adjoints in reverse order.

    Attributes:
        operators: Degradation operators in HR -> LR order.
        num_frames: Number of observations the model describes.
        frame_batch_size: Frames vectorized together by ``apply_all`` and
            ``adjoint_sum``. ``None`` evaluates frames one at a time.
    """

    operators: Sequence[DegradationOperator]
    num_frames: int = 1
    frame_batch_size: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "operators", tuple(self.operators))
        if self.num_frames < 1:
            raise InvalidParameter(f"num_frames must be >= 1, got {self.num_frames}")
        for operator in self.operators:
            operator_frames = getattr(operator, "num_frames", None)
            if operator_frames is not None and operator_frames < self.num_frames:
                raise InvalidParameter(
                    f"{type(operator).__name__} describes {operator_frames} frames, "
                    f"the model needs {self.num_frames}"
                )

    def _check_frame(self, frame_index: int):
        if not 0 <= frame_index < self.num_frames:
            raise IndexOutOfRange(
                f"frame index {frame_index} outside [0, {self.num_frames})"
            )

    def _forward(self, image: Array, frame_index) -> Array:
        return reduce(lambda x, op: op.apply(x, frame_index), self.operators, image)

    def _backward(self, residual: Array, frame_index) -> Array:
        return reduce(
            lambda r, op: op.adjoint(r, frame_index), reversed(self.operators), residual
        )

    def apply(self, image: Array, frame_index: int) -> Array:
        """Simulate the low-resolution observation ``frame_index`` of ``image``."""
        self._check_frame(frame_index)
        return self._forward(image, frame_index)

    def adjoint(self, residual: Array, frame_index: int) -> Array:
        """Back-project an LR-domain ``residual`` of frame ``frame_index`` to HR."""
        self._check_frame(frame_index)
        return self._backward(residual, frame_index)

    def apply_all(self, image: Array) -> Array:
        """Forward model of every frame, stacked as ``(num_frames, C, h, w)``."""
        return map_frames(
            lambda k: self._forward(image, k), self.num_frames, self.frame_batch_size
        )

    def adjoint_sum(self, residuals: Array) -> Array:
        """Sum of the back-projections of a ``(num_frames, C, h, w)`` stack."""
        if residuals.shape[0] != self.num_frames:
            raise IndexOutOfRange(
                f"got residuals for {residuals.shape[0]} frames, "
                f"the model has {self.num_frames}"
            )
        return sum_frames(self._backward, residuals, self.frame_batch_size)

    def aggregate_scale(self) -> float:
        """Product of every downsampling factor in the chain."""
        scale = 1.0
        for operator in self.operators:
            if isinstance(operator, Downsample):
                scale *= operator.scale
        return scale

    def lr_shape(self, hr_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return reduce(lambda s, op: op.output_shape(s), self.operators, tuple(hr_shape))

    def hr_shape(self, lr_shape: Tuple[int, ...]) -> Tuple[int, ...]:
        return reduce(
            lambda s, op: op.input_shape(s), reversed(self.operators), tuple(lr_shape)
        )

    def measure(
        self,
        key: PRNGKeyArray,
        image: Array,
        frame_index: int,
        noise_std: float = 0.0,
    ) -> Array:
        """
        Simulate a noisy observation:
        y_k = A_k x + \\epsilon

        Args:
            key: Random key.
            image: HR image.
            frame_index: Observation index.
            noise_std: Standard deviation of the additive Gaussian noise.

        Returns:
            Array: The simulated LR observation.
        """
        observed = self.apply(image, frame_index)
        return observed + jax.random.normal(key, observed.shape) * noise_std

    def upsample_to_hr(
        self, lr_image: Array, interpolation: Interpolation = Interpolation.LINEAR
    ) -> Array:
        """Naive HR initial estimate sized per the aggregate scale."""
        hr_rows, hr_cols = self.hr_shape(lr_image.shape)[-2:]
        return resize(lr_image, size=(hr_rows, hr_cols), interpolation=interpolation)
