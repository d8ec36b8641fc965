# Copyright 2025 Jacopo Iollo <jacopo.iollo@inria.fr>, Geoffroy Oudoumanessah <geoffroy.oudoumanessah@inria.fr>
# Licensed under the Apache License, Version 2.0 (the "License");
# http://www.apache.org/licenses/LICENSE-2.0
import jax.numpy as jnp
from jaxtyping import Array

from superres.errors import DimensionMismatch


def mse(estimate: Array, reference: Array) -> float:
    if estimate.shape != reference.shape:
        raise DimensionMismatch(
            f"cannot compare images of shape {estimate.shape} and {reference.shape}"
        )
    return float(jnp.mean((estimate - reference) ** 2))


def psnr(estimate: Array, reference: Array, max_value: float = 1.0) -> float:
    """Peak signal-to-noise ratio in dB; infinite for identical images."""
    error = mse(estimate, reference)
    if error == 0:
        return float("inf")
    return float(10 * jnp.log10(max_value**2 / error))
