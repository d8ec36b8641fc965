import jax.numpy as jnp
import pytest

from superres.errors import DimensionMismatch
from superres.metrics import mse, psnr


def test_mse():
    a = jnp.zeros((1, 2, 2))
    b = jnp.full((1, 2, 2), 0.5)
    assert mse(a, b) == pytest.approx(0.25)
    with pytest.raises(DimensionMismatch):
        mse(a, jnp.zeros((1, 2, 3)))


def test_psnr():
    a = jnp.zeros((1, 4, 4))
    assert psnr(a, a) == float("inf")
    assert psnr(a, jnp.full((1, 4, 4), 0.1)) == pytest.approx(20.0)
    assert psnr(a, jnp.full((1, 4, 4), 2.0), max_value=20.0) == pytest.approx(20.0)
