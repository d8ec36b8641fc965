import jax
import jax.numpy as jnp
import pytest

from superres.errors import InvalidParameter
from superres.losses import CharbonnierLoss, HuberLoss, L2Loss

LOSSES = [L2Loss(), HuberLoss(delta=0.1), CharbonnierLoss(epsilon=0.05)]


@pytest.fixture
def residual():
    return jax.random.normal(jax.random.PRNGKey(0), (2, 3, 4, 4)) * 0.3


@pytest.mark.parametrize("loss", LOSSES, ids=lambda l: type(l).__name__)
def test_weights_match_gradient(loss, residual):
    """w * r equals d cost / d r."""
    expected = jax.grad(loss.cost)(residual)
    assert jnp.allclose(loss.weights(residual) * residual, expected)


@pytest.mark.parametrize("loss", LOSSES, ids=lambda l: type(l).__name__)
def test_weights_are_positive(loss, residual):
    assert jnp.all(loss.weights(residual) > 0)
    assert jnp.all(loss.weights(jnp.zeros(3)) > 0)


@pytest.mark.parametrize("loss", LOSSES, ids=lambda l: type(l).__name__)
def test_penalty_is_zero_at_zero(loss):
    assert jnp.allclose(loss.penalty(jnp.zeros(4)), 0.0)
    assert jnp.isclose(loss.cost(jnp.zeros(4)), 0.0)


def test_huber_is_linear_in_the_tails():
    loss = HuberLoss(delta=0.5)
    assert jnp.isclose(loss.penalty(jnp.array(0.4)), 0.08)
    assert jnp.isclose(loss.penalty(jnp.array(3.0)), 0.5 * (3.0 - 0.25))


def test_robust_losses_downweight_outliers():
    residual = jnp.array([0.01, 10.0])
    for loss in (HuberLoss(), CharbonnierLoss()):
        weights = loss.weights(residual)
        assert weights[1] < weights[0]


@pytest.mark.parametrize(
    "factory", [lambda: HuberLoss(delta=0.0), lambda: CharbonnierLoss(epsilon=-1.0)]
)
def test_invalid_parameters(factory):
    with pytest.raises(InvalidParameter):
        factory()
