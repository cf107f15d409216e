from functools import partial
from typing import NamedTuple
from jax import jit
import jax.numpy as jnp

from ._boundary_conditions import periodic_wrap

__all__ = ['Particles', 'make_particles', 'velocity_half_push', 'position_push']


class Particles(NamedTuple):
    """
    Particle ensemble as a structure of arrays.

    All three arrays share the particle index, which is stable for the whole
    run. Tags are display labels (e.g. beam index) and never enter the physics.
    """
    positions: jnp.ndarray
    velocities: jnp.ndarray
    tags: jnp.ndarray


def make_particles(positions, velocities, tags=None):
    """
    Build a Particles ensemble, checking that the arrays line up.

    Args:
        positions (array): Positions, shape (N,).
        velocities (array): Velocities, shape (N,).
        tags (array, optional): Integer display tags, shape (N,). Zeros if None.

    Returns:
        Particles: The ensemble with float64 positions/velocities and int32 tags.
    """
    positions = jnp.asarray(positions, dtype=jnp.float64)
    velocities = jnp.asarray(velocities, dtype=jnp.float64)
    tags = jnp.zeros(positions.shape, dtype=jnp.int32) if tags is None else jnp.asarray(tags, dtype=jnp.int32)

    if positions.ndim != 1:
        raise ValueError(f"Expected one-dimensional positions, got shape {positions.shape}")
    if velocities.shape != positions.shape:
        raise ValueError(f"Expected velocities shape {positions.shape}, got {velocities.shape}")
    if tags.shape != positions.shape:
        raise ValueError(f"Expected tags shape {positions.shape}, got {tags.shape}")
    return Particles(positions, velocities, tags)


@partial(jit, static_argnames=('config', 'forward'))
def velocity_half_push(velocities, e_at_particles, config, forward=True):
    """
    Accelerate particles for half a timestep in the interpolated field.

    forward=False applies the backward half step used once at startup to put
    velocities half a step behind positions.
    """
    kick = config.dt / 2 * (config.charge / config.mass) * e_at_particles
    return velocities + kick if forward else velocities - kick


@partial(jit, static_argnames=('config',))
def position_push(positions, velocities, config):
    """Move particles one full timestep and wrap them into [0, L)."""
    return periodic_wrap(positions + config.dt * velocities, config.length)
