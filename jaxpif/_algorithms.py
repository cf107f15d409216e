from functools import partial
from jax import jit

from ._fields import deposit, solve_fields, interpolate_field, mode_energies, real_space
from ._particles import velocity_half_push, position_push
from ._diagnostics import kinetic_energy, momentum

__all__ = ['bootstrap', 'leapfrog_step']


@partial(jit, static_argnames=('config', 'transform'))
def bootstrap(positions, velocities, shape_filter, config, transform):
    """
    Desynchronize velocities from positions for the leapfrog scheme.

    Solves the fields at the initial positions and applies one backward half
    kick, leaving velocities at t = -dt/2.
    """
    rhok = deposit(positions, shape_filter, config, transform)
    _, ek, _ = solve_fields(rhok, shape_filter, config)
    e_at_particles = interpolate_field(ek, positions, transform)
    return velocity_half_push(velocities, e_at_particles, config, forward=False)


@partial(jit, static_argnames=('config', 'transform'))
def leapfrog_step(carry, step_index, shape_filter, config, transform):
    """
    Advance the ensemble by one timestep.

    On entry positions are at step n and velocities at n - 1/2. The field is
    solved once; the first half kick brings velocities to step n, where the
    energies and momentum are recorded, and the second half kick with the
    same field brings them to n + 1/2 before the drift.

    Args:
        carry (tuple): (positions, velocities).
        step_index (int): Step number n.
        shape_filter (array): Shape filter coefficients, shape (G/2,).
        config (SimulationConfig): Run configuration.
        transform (FinufftTransform): Spectral transform adapter.

    Returns:
        tuple: New carry and the step data
            (time, potential, kinetic, momentum, mode_energy, charge_density, potential_x).
    """
    positions, velocities = carry

    rhok = deposit(positions, shape_filter, config, transform)
    phik, ek, potential = solve_fields(rhok, shape_filter, config)
    e_at_particles = interpolate_field(ek, positions, transform)

    velocities = velocity_half_push(velocities, e_at_particles, config)

    # Diagnostics of the synchronized state at t = n dt
    step_data = (
        step_index * config.dt,
        potential,
        kinetic_energy(velocities, config.mass),
        momentum(velocities, config.mass),
        mode_energies(phik, rhok, config.mode_log_max),
        real_space(rhok, transform),
        real_space(phik, transform),
    )

    velocities = velocity_half_push(velocities, e_at_particles, config)
    positions = position_push(positions, velocities, config)

    return (positions, velocities), step_data
