import jax
import jax.numpy as jnp
import pytest

from superres.errors import DimensionMismatch, IndexOutOfRange, InvalidParameter
from superres.image import Interpolation
from superres.image_model import ImageModel
from superres.operators import Blur, Downsample, MotionWarp

SHIFTS = [(0.0, 0.0), (0.5, 0.25), (-1.0, 1.5)]


@pytest.fixture
def model():
    return ImageModel(
        [MotionWarp.from_shifts(SHIFTS), Blur.gaussian(0.7, size=3), Downsample(2)],
        num_frames=len(SHIFTS),
    )


@pytest.fixture
def hr_image():
    return jax.random.uniform(jax.random.PRNGKey(0), (2, 8, 10))


def test_apply_composes_operators_in_order(model, hr_image):
    warp, blur, down = model.operators
    expected = down.apply(blur.apply(warp.apply(hr_image, 1)))
    assert jnp.allclose(model.apply(hr_image, 1), expected)


@pytest.mark.parametrize("frame_index", range(len(SHIFTS)))
def test_composed_adjoint(model, hr_image, frame_index):
    y = jax.random.normal(jax.random.PRNGKey(1), (2, 4, 5))
    lhs = jnp.vdot(model.apply(hr_image, frame_index), y)
    rhs = jnp.vdot(hr_image, model.adjoint(y, frame_index))
    assert jnp.allclose(lhs, rhs)


@pytest.mark.parametrize("frame_index", [-1, 3, 10])
def test_frame_index_out_of_range(model, hr_image, frame_index):
    with pytest.raises(IndexOutOfRange):
        model.apply(hr_image, frame_index)
    with pytest.raises(IndexOutOfRange):
        model.adjoint(jnp.zeros((2, 4, 5)), frame_index)


def test_empty_model_is_identity(hr_image):
    model = ImageModel([])
    assert jnp.allclose(model.apply(hr_image, 0), hr_image)
    assert jnp.allclose(model.adjoint(hr_image, 0), hr_image)
    assert model.aggregate_scale() == 1.0


def test_model_validation():
    with pytest.raises(InvalidParameter):
        ImageModel([], num_frames=0)
    # the motion model describes fewer frames than requested
    with pytest.raises(InvalidParameter):
        ImageModel([MotionWarp.from_shifts([(0.0, 0.0)])], num_frames=2)


def test_aggregate_scale_and_shapes():
    model = ImageModel([Downsample(2), Blur.identity(), Downsample(3)])
    assert model.aggregate_scale() == 6
    assert model.lr_shape((1, 12, 24)) == (1, 2, 4)
    assert model.hr_shape((1, 2, 4)) == (1, 12, 24)
    with pytest.raises(DimensionMismatch):
        model.lr_shape((1, 10, 24))


def test_apply_all_matches_per_frame(model, hr_image):
    stacked = model.apply_all(hr_image)
    assert stacked.shape == (3, 2, 4, 5)
    for k in range(model.num_frames):
        assert jnp.allclose(stacked[k], model.apply(hr_image, k))


def test_adjoint_sum_matches_per_frame(model):
    residuals = jax.random.normal(jax.random.PRNGKey(2), (3, 2, 4, 5))
    expected = sum(model.adjoint(residuals[k], k) for k in range(model.num_frames))
    assert jnp.allclose(model.adjoint_sum(residuals), expected)


@pytest.mark.parametrize("batch_size", [1, 2, 3])
def test_frame_batching_does_not_change_results(model, hr_image, batch_size):
    batched = ImageModel(model.operators, model.num_frames, frame_batch_size=batch_size)
    residuals = jax.random.normal(jax.random.PRNGKey(3), (3, 2, 4, 5))
    assert jnp.allclose(batched.apply_all(hr_image), model.apply_all(hr_image))
    assert jnp.allclose(batched.adjoint_sum(residuals), model.adjoint_sum(residuals))


def test_adjoint_sum_needs_one_residual_per_frame(model):
    with pytest.raises(IndexOutOfRange):
        model.adjoint_sum(jnp.zeros((2, 2, 4, 5)))


def test_measure(model, hr_image):
    key = jax.random.PRNGKey(4)
    clean = model.measure(key, hr_image, 2)
    assert jnp.allclose(clean, model.apply(hr_image, 2))

    noisy = model.measure(key, hr_image, 2, noise_std=0.1)
    assert noisy.shape == clean.shape
    assert not jnp.allclose(noisy, clean)
    assert jnp.std(noisy - clean) < 0.3


@pytest.mark.parametrize(
    "interpolation", [Interpolation.NEAREST, Interpolation.LINEAR, Interpolation.ADDITIVE]
)
def test_upsample_to_hr(model, interpolation):
    lr = jnp.ones((2, 4, 5))
    hr = model.upsample_to_hr(lr, interpolation)
    assert hr.shape == (2, 8, 10)


def test_identity_chain_is_identity(hr_image):
    model = ImageModel(
        [MotionWarp.from_shifts([(0.0, 0.0)]), Blur.identity(), Downsample(1)]
    )
    assert model.aggregate_scale() == 1.0
    assert jnp.allclose(model.apply(hr_image, 0), hr_image)
    assert jnp.allclose(model.adjoint(hr_image, 0), hr_image)
    assert jnp.allclose(model.apply_all(hr_image)[0], hr_image)
    assert jnp.allclose(model.adjoint_sum(hr_image[None]), hr_image)
