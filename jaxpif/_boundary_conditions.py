from jax import jit
import jax.numpy as jnp

__all__ = ['periodic_wrap']


@jit
def periodic_wrap(positions, length):
    """
    Wrap positions back into [0, length) by at most one period.

    Negative positions are shifted first so that a value rounding up to
    exactly `length` is caught by the second test. A particle moving more
    than one system length per step is a modeling error and is not handled.

    Args:
        positions (array): Particle positions, shape (N,).
        length (float): Periodic system length.

    Returns:
        array: Wrapped positions, shape (N,).
    """
    positions = jnp.where(positions < 0, positions + length, positions)
    positions = jnp.where(positions >= length, positions - length, positions)
    return positions
