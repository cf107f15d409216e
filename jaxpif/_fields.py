from functools import partial
from jax import jit
import jax.numpy as jnp

__all__ = ['wavenumbers', 'deposit', 'solve_fields', 'mode_energies',
           'hermitian_spectrum', 'interpolate_field', 'real_space']


def wavenumbers(config):
    """k_j = 2*pi*j/L for the one-sided modes j = 0..G/2-1."""
    return 2 * jnp.pi * jnp.arange(config.number_grid_points // 2) / config.length


@partial(jit, static_argnames=('config', 'transform'))
def deposit(positions, shape_filter, config, transform):
    """
    Charge density Fourier coefficients of the particle ensemble.

    The nonuniform transform counts particles per mode (unit weights, sign -1);
    counts are scaled by q/G, smoothed with the shape filter, and the k=0 mode
    is removed (neutralizing background).

    Args:
        positions (array): Particle positions in [0, L), shape (N,).
        shape_filter (array): Shape filter coefficients, shape (G/2,).
        config (SimulationConfig): Run configuration.
        transform (FinufftTransform): Spectral transform adapter.

    Returns:
        array: rho(k) for modes 0..G/2-1, shape (G/2,), with rho(0) == 0.
    """
    G = config.number_grid_points
    counts = transform.forward_nonuniform(positions)[G // 2:]
    rhok = config.charge * counts / G * shape_filter
    return rhok.at[0].set(0.0)


@partial(jit, static_argnames=('config',))
def solve_fields(rhok, shape_filter, config):
    r"""
    Exact per-mode electrostatic solve.

    In Fourier space, for every mode j >= 1:
        phi_k = S_k * rho_k / (epsilon_0 k^2) * dx
        E_k   = -i k phi_k
    so that E = -d(phi)/dx with rho deposited by exp(-i k x) and fields
    evaluated by exp(+i k x). The potential energy is the discrete
    analogue of \int phi rho dx:
        W = L * sum_{j >= 1} Re(phi_j) Re(rho_j) + Im(phi_j) Im(rho_j)

    Returns:
        tuple: (phik, ek, potential_energy); phik[0] == ek[0] == 0.
    """
    k = wavenumbers(config)
    k_safe = k.at[0].set(1.0)

    phik = shape_filter * rhok / (config.epsilon_0 * k_safe**2) * config.dx
    phik = phik.at[0].set(0.0)
    ek = -1j * k * phik

    potential_energy = config.length * jnp.sum(
        jnp.real(phik) * jnp.real(rhok) + jnp.imag(phik) * jnp.imag(rhok))
    return phik, ek, potential_energy


@partial(jit, static_argnames=('number_modes',))
def mode_energies(phik, rhok, number_modes):
    """Per-mode electrostatic energy term for modes 1..number_modes (unscaled by L)."""
    energy = jnp.real(phik) * jnp.real(rhok) + jnp.imag(phik) * jnp.imag(rhok)
    return energy[1:number_modes + 1]


@jit
def hermitian_spectrum(ek):
    """
    Two-sided centred spectrum from the one-sided modes 0..G/2-1.

    Index G/2 + j holds mode j and index G/2 - j its conjugate, so the
    inverse transform yields a real field. Mode 0 and the unpaired -G/2
    slot are zero.
    """
    upper = ek.at[0].set(0.0)
    lower = jnp.conj(upper[1:])[::-1]
    return jnp.concatenate([jnp.zeros((1,), dtype=upper.dtype), lower, upper])


@partial(jit, static_argnames=('transform',))
def interpolate_field(ek, positions, transform):
    """
    Electric field at particle positions from the one-sided field spectrum.

    No shape smoothing is applied here; the filter enters only through the
    deposit and the field solve.

    Returns:
        array: Real field at each particle, shape (N,).
    """
    spectrum = hermitian_spectrum(ek)
    return jnp.real(transform.inverse_nonuniform(spectrum, positions))


def real_space(coefficients, transform):
    """
    Samples on the uniform grid x_m = m L / G of a one-sided spectrum.

    Used for density and potential plots: the G/2 coefficients are padded
    with a zero Nyquist slot and inverse transformed (unnormalized c2r).
    """
    padded = jnp.concatenate([coefficients, jnp.zeros((1,), dtype=coefficients.dtype)])
    return transform.uniform_inverse_fft(padded, 2 * coefficients.shape[0])
