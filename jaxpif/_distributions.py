from functools import partial
import jax.numpy as jnp
from jax import jit, lax
from jax.random import PRNGKey, normal

from ._boundary_conditions import periodic_wrap
from ._particles import Particles

__all__ = ['two_stream', 'landau', 'standing_wave', 'invert_position_cdf',
           'initialize_particles', 'TEST_CASES']


@partial(jit, static_argnames=('config',))
def two_stream(config, key):
    """
    Two counter-streaming cold beams, the standard two-stream instability test.

    Particles sit on a uniform lattice x_i = i L / N. Odd particles move at
    +beam_speed (tag 1), even ones at -beam_speed (tag 0), each with a small
    Gaussian thermal spread.
    """
    N = config.number_particles
    index = jnp.arange(N)
    positions = index * config.length / N

    direction = jnp.where(index % 2 == 1, 1.0, -1.0)
    velocities = direction * config.beam_speed + config.two_stream_spread * normal(key, (N,))
    tags = (index % 2).astype(jnp.int32)
    return Particles(positions, velocities, tags)


@jit
def invert_position_cdf(u, length, wavenumber, amplitude):
    """
    Positions distributed as f(x) ~ 1 + a cos(k x) by inverse transform sampling.

    Solves x/L + a/(k L) sin(k x) - u = 0 for every u with Newton's method until
    all residuals are below 1e-9. The CDF is monotonic for |a| < 1, so the
    iteration has no cap.
    """
    def residual(x):
        return x / length + amplitude / (wavenumber * length) * jnp.sin(wavenumber * x) - u

    def not_converged(x):
        return jnp.max(jnp.abs(residual(x))) > 1e-9

    def newton_step(x):
        slope = 1 / length + amplitude / length * jnp.cos(wavenumber * x)
        return x - residual(x) / slope

    return lax.while_loop(not_converged, newton_step, u * length)


@partial(jit, static_argnames=('config',))
def landau(config, key):
    """
    Density wave in a Maxwellian, used to observe Landau damping.

        f(x, v) = exp(-v^2 / (2 v_th^2)) / (sqrt(2 pi) v_th) * (1 + a cos(k x)) / L
    """
    N = config.number_particles
    wavenumber = config.wave_mode * 2 * jnp.pi / config.length

    positions = invert_position_cdf(jnp.arange(N) / N, config.length, wavenumber,
                                    config.perturbation_amplitude)
    velocities = config.thermal_velocity * normal(key, (N,))
    return Particles(positions, velocities, jnp.zeros(N, dtype=jnp.int32))


@partial(jit, static_argnames=('config',))
def standing_wave(config, key=None):
    """
    Displaced charges that should oscillate as a single standing mode.

    Standard PIC does not keep this a single mode (finite grid instability,
    Huang et al. 2016, Comput. Phys. Commun. 207, 123-135), which makes it a
    useful fidelity check for the spectral method.
    """
    N = config.number_particles
    m = config.wave_mode
    amplitude = config.standing_amplitude
    scale = config.length / (2 * jnp.pi * m)

    positions = jnp.arange(N) * config.length / N
    positions = positions + amplitude * scale * jnp.cos(2 * jnp.pi * m * positions / config.length)
    velocities = amplitude * config.plasma_frequency * scale * jnp.sin(2 * jnp.pi * m * positions / config.length)
    return Particles(periodic_wrap(positions, config.length), velocities, jnp.zeros(N, dtype=jnp.int32))


TEST_CASES = {
    "two_stream": two_stream,
    "landau":     landau,
    "standing":   standing_wave,
}


def initialize_particles(config, key=None):
    """
    Initial ensemble for the configured test case.

    Args:
        config (SimulationConfig): Run configuration; config.test_case selects the initializer.
        key (PRNGKey, optional): Random key; PRNGKey(config.seed) if None.

    Returns:
        Particles: Initial positions in [0, L), velocities and tags.
    """
    if config.test_case not in TEST_CASES:
        raise ValueError(f"Unknown test case {config.test_case!r}, expected one of {tuple(TEST_CASES)}")
    key = PRNGKey(config.seed) if key is None else key
    return TEST_CASES[config.test_case](config, key)
