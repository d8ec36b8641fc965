import jax
import jax.numpy as jnp
from jaxtyping import Array, PyTree
from typing import Callable, Optional


def map_frames(
    fn: Callable[[Array], PyTree], num_frames: int, batch_size: Optional[int] = None
) -> PyTree:
    """Evaluate ``fn(frame_index)`` for every frame, stacked in frame order.

    ``batch_size`` frames are vectorized together; the result does not depend on it.
    """
    frames = jnp.arange(num_frames)
    return jax.lax.map(fn, frames, batch_size=batch_size)


def sum_frames(
    fn: Callable[[Array, Array], Array], xs: Array, batch_size: Optional[int] = None
) -> Array:
    """Sum ``fn(xs[frame_index], frame_index)`` over the leading axis of ``xs``.

    Partial results are stacked first and reduced once, after the mapped phase.
    """
    frames = jnp.arange(xs.shape[0])
    partials = jax.lax.map(lambda args: fn(*args), (xs, frames), batch_size=batch_size)
    return jnp.sum(partials, axis=0)
