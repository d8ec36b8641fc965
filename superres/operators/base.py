# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
from typing import Protocol, Tuple

from jaxtyping import Array


class DegradationOperator(Protocol):
    """One step of the HR -> LR degradation chain.

    adjoint is the transpose of apply with respect to the pixel inner
    product: <r, apply(x)> == <adjoint(r), x>.
    """

    def apply(self, image: Array, frame_index: int = 0) -> Array: ...

    def adjoint(self, residual: Array, frame_index: int = 0) -> Array: ...

    def output_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]: ...

    def input_shape(self, shape: Tuple[int, ...]) -> Tuple[int, ...]: ...
