from jax import jit
import jax.numpy as jnp
import numpy as np
from jax.numpy.fft import rfft, rfftfreq

__all__ = ['kinetic_energy', 'momentum', 'damping_rate', 'diagnostics']


@jit
def kinetic_energy(velocities, mass):
    """Total kinetic energy sum(m/2 v^2)."""
    return 0.5 * mass * jnp.sum(velocities**2)


@jit
def momentum(velocities, mass):
    """Total momentum sum(m v)."""
    return mass * jnp.sum(velocities)


def damping_rate(time, energy, t_start=0.0, t_end=None):
    """
    Exponential growth/damping rate of a wave from its mode-energy history.

    The energy of a damped Langmuir wave oscillates at twice the wave
    frequency under an envelope exp(2 gamma t). We take the local maxima of
    |energy| inside [t_start, t_end] and fit a line to their logarithm.

    Args:
        time (array): Sample times, shape (T,).
        energy (array): Mode energy at each time, shape (T,).
        t_start (float): Start of the fitting window.
        t_end (float, optional): End of the fitting window; last sample if None.

    Returns:
        float: gamma, the field-amplitude rate (half the energy slope).
            Negative for damping.
    """
    time = np.asarray(time)
    energy = np.abs(np.asarray(energy))
    t_end = time[-1] if t_end is None else t_end

    window = (time >= t_start) & (time <= t_end)
    t_w, e_w = time[window], energy[window]
    if t_w.size < 3:
        raise ValueError("Not enough samples in the fitting window")

    peaks = np.where((e_w[1:-1] > e_w[:-2]) & (e_w[1:-1] >= e_w[2:]) & (e_w[1:-1] > 0))[0] + 1
    if peaks.size < 2:
        raise ValueError("Need at least two energy maxima to fit a damping rate")

    slope, _ = np.polyfit(t_w[peaks], np.log(e_w[peaks]), 1)
    return float(slope / 2)


def diagnostics(output):
    """
    Post-process a simulation output dictionary in place.

    Adds energy and momentum conservation errors, the dominant frequency of
    the potential energy history and, for Landau runs, the damping rate of
    the perturbed mode over the first plasma periods.
    """
    time = output["time_array"]
    total_energy = output["total_energy"]
    momentum_history = output["momentum"]

    reference_energy = jnp.abs(total_energy[0])
    relative_energy_error = jnp.abs(total_energy - total_energy[0]) / jnp.where(
        reference_energy == 0, 1.0, reference_energy)
    momentum_change = momentum_history - momentum_history[0]

    # Dominant (angular) frequency of the field energy exchange
    dt = float(output["dt"])
    potential = output["potential_energy"] - jnp.mean(output["potential_energy"])
    magnitude = jnp.abs(rfft(potential))
    freqs = rfftfreq(potential.shape[0], d=dt) * 2 * jnp.pi
    dominant_frequency = freqs[1 + jnp.argmax(magnitude[1:])] if magnitude.shape[0] > 1 else 0.0

    output.update({
        'relative_energy_error':     relative_energy_error,
        'max_relative_energy_error': jnp.max(relative_energy_error),
        'momentum_change':           momentum_change,
        'max_momentum_change':       jnp.max(jnp.abs(momentum_change)),
        'dominant_frequency':        dominant_frequency,
    })

    if output.get("test_case") == "landau":
        wave_mode = output["wave_mode"]
        mode_energy = output["mode_energy"]
        if 1 <= wave_mode <= mode_energy.shape[1]:
            t_end = output.get("damping_fit_periods", 4) * 2 * np.pi / float(output["plasma_frequency"])
            try:
                output['damping_rate'] = damping_rate(time, mode_energy[:, wave_mode - 1], 0.0, t_end)
            except ValueError:
                output['damping_rate'] = float('nan')

    return output
