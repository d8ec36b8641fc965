import jax
import jax.numpy as jnp
import pytest

from superres.errors import InvalidParameter
from superres.regularizers import (
    BilateralTotalVariationRegularizer,
    TikhonovRegularizer,
    TotalVariationRegularizer,
    shift_difference,
    shift_difference_adjoint,
)

REGULARIZERS = [
    TikhonovRegularizer(weight=0.3),
    TotalVariationRegularizer(weight=0.2, epsilon=0.05),
    BilateralTotalVariationRegularizer(weight=0.1, radius=2, decay=0.6, epsilon=0.05),
]


@pytest.fixture
def image():
    return jax.random.uniform(jax.random.PRNGKey(0), (2, 7, 6))


@pytest.mark.parametrize("shift", [(0, 1), (1, 0), (2, -1), (1, 2), (-1, -3)])
def test_shift_difference_adjoint(image, shift):
    y = jax.random.normal(jax.random.PRNGKey(1), image.shape)
    lhs = jnp.vdot(shift_difference(image, *shift), y)
    rhs = jnp.vdot(image, shift_difference_adjoint(y, *shift))
    assert jnp.allclose(lhs, rhs)


def test_shift_difference_values():
    image = jnp.arange(9.0).reshape(1, 3, 3)
    horizontal = shift_difference(image, 0, 1)
    assert jnp.allclose(horizontal[0, :, :2], 1.0)
    assert jnp.allclose(horizontal[0, :, 2], 0.0)
    vertical = shift_difference(image, 1, 0)
    assert jnp.allclose(vertical[0, :2], 3.0)
    assert jnp.allclose(vertical[0, 2], 0.0)


@pytest.mark.parametrize("regularizer", REGULARIZERS, ids=lambda r: type(r).__name__)
def test_gradient_matches_autodiff(regularizer, image):
    expected = jax.grad(regularizer.cost)(image)
    assert jnp.allclose(regularizer.gradient(image), expected)


@pytest.mark.parametrize("regularizer", REGULARIZERS, ids=lambda r: type(r).__name__)
def test_constant_image_costs_nothing(regularizer):
    image = jnp.full((1, 5, 5), 0.7)
    assert jnp.isclose(regularizer.cost(image), 0.0)
    assert jnp.allclose(regularizer.gradient(image), 0.0)


@pytest.mark.parametrize("regularizer", REGULARIZERS, ids=lambda r: type(r).__name__)
def test_irls_weights_are_positive(regularizer, image):
    residuals = regularizer.residuals(image)
    assert residuals.shape == (len(regularizer.shifts),) + image.shape
    assert jnp.all(regularizer.irls_weights(residuals) > 0)


def test_zero_weight_disables_regularizer(image):
    regularizer = TotalVariationRegularizer(weight=0.0)
    assert regularizer.cost(image) == 0.0
    assert jnp.allclose(regularizer.gradient(image), 0.0)


def test_bilateral_shifts_cover_each_pair_once():
    assert BilateralTotalVariationRegularizer(radius=1).shifts == (
        (0, 1),
        (1, -1),
        (1, 0),
        (1, 1),
    )
    shifts = BilateralTotalVariationRegularizer(radius=2).shifts
    assert len(shifts) == ((2 * 2 + 1) ** 2 - 1) // 2
    assert not any((-dy, -dx) in shifts for dy, dx in shifts)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: TikhonovRegularizer(weight=-1.0),
        lambda: TotalVariationRegularizer(epsilon=0.0),
        lambda: BilateralTotalVariationRegularizer(radius=0),
        lambda: BilateralTotalVariationRegularizer(decay=1.5),
        lambda: BilateralTotalVariationRegularizer(weight=-0.1),
    ],
)
def test_invalid_parameters(factory):
    with pytest.raises(InvalidParameter):
        factory()
